"""Tests for validated creates, updates and deletes through PedigreeService."""

from datetime import date, datetime, timedelta

import pytest

from errors import (
    CircularAncestryError,
    DuplicateBandError,
    FutureBirthDateError,
    IndividualNotFoundError,
    InvalidBirthOrderError,
    InvalidParentSexError,
    SelfParentError,
    ValidationError,
)
from models import Sex
from service import PedigreeService, normalize_payload
from store import MemoryStore

from conftest import TODAY


def bird(band, sex="UNDETERMINED", birth_date="2020-01-01", **extra):
    return {
        "name": f"Bird {band}",
        "band": band,
        "registration_code": f"RC-{band}",
        "sex": sex,
        "birth_date": birth_date,
        **extra,
    }


def walks_back_to_itself(store, individual_id):
    seen = set()
    stack = [individual_id]
    while stack:
        current = store.get(stack.pop())
        if current is None:
            continue
        for parent_id in (current.father_id, current.mother_id):
            if parent_id == individual_id:
                return True
            if parent_id and parent_id not in seen:
                seen.add(parent_id)
                stack.append(parent_id)
    return False


class TestNormalizePayload:
    def test_coerces_dates_and_sex(self):
        payload = normalize_payload({"birth_date": "2021-03-04T00:00:00.000Z", "sex": "FEMALE"})
        assert payload["birth_date"] == date(2021, 3, 4)
        assert payload["sex"] is Sex.FEMALE

    def test_drops_id_and_unknown_fields(self):
        payload = normalize_payload({"id": "x", "colour": "blue", "name": "Azul"})
        assert payload == {"name": "Azul"}

    def test_empty_parent_reference_clears(self):
        assert normalize_payload({"father_id": ""}) == {"father_id": None}

    def test_bad_sex_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            normalize_payload({"sex": "ROOSTER"})

    def test_bad_date_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            normalize_payload({"birth_date": "yesterday"})

    def test_datetime_birth_date_becomes_a_date(self):
        payload = normalize_payload({"birth_date": datetime(2020, 1, 1, 12, 0)})
        assert payload["birth_date"] == date(2020, 1, 1)
        assert type(payload["birth_date"]) is date

    def test_create_with_datetime_birth_date(self, service):
        created = service.create(bird("A1", birth_date=datetime(2020, 1, 1, 12, 0)))
        assert created.birth_date == date(2020, 1, 1)
        with pytest.raises(FutureBirthDateError):
            service.create(bird("A2", birth_date=datetime(2030, 1, 1, 8, 30)))


class TestCreate:
    def test_create_persists_record(self, service, store):
        created = service.create(bird("A1", sex="MALE"))
        stored = store.get(created.id)
        assert stored.band == "A1"
        assert stored.sex is Sex.MALE
        assert stored.birth_date == date(2020, 1, 1)
        assert stored.created_at is not None

    def test_duplicate_band_always_fails(self, service):
        service.create(bird("A1", sex="MALE"))
        with pytest.raises(DuplicateBandError):
            service.create(bird("A1", sex="FEMALE", birth_date="2019-01-01", name="Other"))

    def test_birth_date_tomorrow_fails(self, service, store):
        tomorrow = (TODAY + timedelta(days=1)).isoformat()
        with pytest.raises(FutureBirthDateError):
            service.create(bird("A1", birth_date=tomorrow))
        assert store.all() == []

    def test_birth_date_today_is_fine(self, service):
        service.create(bird("A1", birth_date=TODAY))

    def test_missing_required_field(self, service):
        data = bird("A1")
        del data["registration_code"]
        with pytest.raises(ValidationError):
            service.create(data)

    def test_female_father_fails_undetermined_succeeds(self, service):
        hen = service.create(bird("H1", sex="FEMALE", birth_date="2018-01-01"))
        unknown = service.create(bird("U1", sex="UNDETERMINED", birth_date="2018-01-01"))
        with pytest.raises(InvalidParentSexError):
            service.create(bird("C1", father_id=hen.id))
        child = service.create(bird("C1", father_id=unknown.id))
        assert child.father_id == unknown.id

    def test_child_older_than_parent_fails_without_write(self, service, store):
        mother = service.create(bird("M1", sex="FEMALE", birth_date="2021-01-01"))
        with pytest.raises(InvalidBirthOrderError):
            service.create(bird("C1", birth_date="2020-06-01", mother_id=mother.id))
        assert len(store.all()) == 1

    def test_payload_id_is_ignored(self, service):
        created = service.create({**bird("A1"), "id": "chosen"})
        assert created.id != "chosen"


class TestUpdate:
    def test_missing_individual(self, service):
        with pytest.raises(IndividualNotFoundError):
            service.update("nope", {"name": "x"})

    def test_keeping_own_band_is_allowed(self, service):
        created = service.create(bird("A1"))
        updated = service.update(created.id, {"band": "A1", "name": "Renamed"})
        assert updated.name == "Renamed"

    def test_taking_another_band_fails(self, service):
        service.create(bird("A1"))
        other = service.create(bird("A2"))
        with pytest.raises(DuplicateBandError):
            service.update(other.id, {"band": "A1"})

    def test_future_birth_date_fails(self, service):
        created = service.create(bird("A1"))
        with pytest.raises(FutureBirthDateError):
            service.update(created.id, {"birth_date": TODAY + timedelta(days=30)})

    def test_self_parent_fails(self, service):
        created = service.create(bird("A1"))
        with pytest.raises(SelfParentError):
            service.update(created.id, {"mother_id": created.id})

    def test_circular_ancestry_scenario(self, service, store):
        x = service.create(bird("A1", sex="UNDETERMINED", birth_date="2020-01-01"))
        y = service.create(bird("A2", sex="MALE", birth_date="2021-01-01", father_id=x.id))
        with pytest.raises(CircularAncestryError):
            service.update(x.id, {"father_id": y.id})
        assert store.get(x.id).father_id is None

    def test_acyclic_after_every_successful_parent_change(self, service, store):
        a = service.create(bird("A", birth_date="2015-01-01"))
        b = service.create(bird("B", birth_date="2016-01-01", father_id=a.id))
        c = service.create(bird("C", birth_date="2017-01-01", mother_id=b.id))
        d = service.create(bird("D", birth_date="2014-01-01"))

        service.update(a.id, {"father_id": d.id})
        for target, parent in [(a, c), (b, c), (d, c), (d, a)]:
            try:
                service.update(target.id, {"mother_id": parent.id})
            except ValidationError:
                pass
        for individual in store.all():
            assert not walks_back_to_itself(store, individual.id)

    def test_parent_checked_against_stored_birth_date(self, service):
        young = service.create(bird("Y", sex="MALE", birth_date="2022-01-01"))
        older = service.create(bird("O", birth_date="2020-01-01"))
        with pytest.raises(InvalidBirthOrderError):
            service.update(older.id, {"father_id": young.id})

    def test_clearing_a_parent(self, service):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        child = service.create(bird("C", father_id=father.id))
        updated = service.update(child.id, {"father_id": None})
        assert updated.father_id is None

    def test_birth_date_change_respects_parents_and_children(self, service):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        child = service.create(bird("C", birth_date="2020-01-01", father_id=father.id))
        with pytest.raises(InvalidBirthOrderError):
            service.update(child.id, {"birth_date": "2017-01-01"})
        with pytest.raises(InvalidBirthOrderError):
            service.update(father.id, {"birth_date": "2020-02-01"})
        service.update(father.id, {"birth_date": "2016-01-01"})

    def test_sex_change_blocked_while_fathering(self, service):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        service.create(bird("C", father_id=father.id))
        with pytest.raises(InvalidParentSexError):
            service.update(father.id, {"sex": "FEMALE"})
        assert service.update(father.id, {"sex": "UNDETERMINED"}).sex is Sex.UNDETERMINED

    def test_only_supplied_fields_change(self, service):
        created = service.create(bird("A1", sex="MALE"))
        updated = service.update(created.id, {"name": "New name"})
        assert updated.band == "A1"
        assert updated.sex is Sex.MALE
        assert updated.birth_date == date(2020, 1, 1)


class TestDelete:
    def test_delete_clears_children_references(self, service, store):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        mother = service.create(bird("M", sex="FEMALE", birth_date="2018-01-01"))
        child = service.create(bird("C", father_id=father.id, mother_id=mother.id))
        service.delete(father.id)
        remaining = store.get(child.id)
        assert remaining.father_id is None
        assert remaining.mother_id == mother.id

    def test_delete_missing(self, service):
        with pytest.raises(IndividualNotFoundError):
            service.delete("nope")


class TestAudit:
    def test_clean_registry(self, service):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        service.create(bird("C", father_id=father.id))
        assert service.audit() == []

    def test_cycle_written_outside_engine_is_reported(self):
        store = MemoryStore()
        service = PedigreeService(store, today=TODAY)
        a = service.create(bird("A", birth_date=None))
        b = service.create(bird("B", birth_date=None, father_id=a.id))
        store.update(a.id, {"mother_id": b.id})
        warnings = service.audit()
        assert any("Cycle detected" in w for w in warnings)

    def test_audit_of_one_pedigree_ignores_other_lines(self, service, store):
        father = service.create(bird("F", sex="MALE", birth_date="2018-01-01"))
        child = service.create(bird("C", father_id=father.id))
        stranger = service.create(bird("S"))
        store.update(stranger.id, {"mother_id": "gone"})
        assert service.audit(child.id) == []
        assert any("Broken reference" in w for w in service.audit())

    def test_audit_of_unknown_bird(self, service):
        with pytest.raises(IndividualNotFoundError):
            service.audit("nope")
