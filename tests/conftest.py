"""Shared fixtures: an in-memory registry and a service with a fixed 'today'."""

from datetime import date

import pytest

from models import Sex
from service import PedigreeService
from store import MemoryStore

TODAY = date(2026, 6, 1)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def service(store):
    return PedigreeService(store, today=TODAY)


@pytest.fixture
def add_bird(store):
    """Insert a bird straight into the store, bypassing validation."""
    counter = iter(range(1, 10_000))

    def _add(name=None, sex=Sex.UNDETERMINED, birth_date=None, father_id=None, mother_id=None,
             band=None):
        n = next(counter)
        return store.create(
            {
                "name": name or f"Bird {n}",
                "band": band or f"B{n:04d}",
                "registration_code": f"RC-{n}",
                "sex": sex,
                "birth_date": birth_date,
                "father_id": father_id,
                "mother_id": mother_id,
            }
        )

    return _add


class CountingStore(MemoryStore):
    """MemoryStore that counts reads, to prove which calls touch storage."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reads = 0

    def get(self, individual_id):
        self.reads += 1
        return super().get(individual_id)

    def find(self, **kwargs):
        self.reads += 1
        return super().find(**kwargs)


@pytest.fixture
def counting_store():
    return CountingStore()
