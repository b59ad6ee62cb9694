"""Record store interface and the in-memory implementation."""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol
import uuid

from errors import DuplicateBandError, IndividualNotFoundError
from models import Individual, Sex

# Fields a caller may write; id and timestamps are owned by the store.
WRITABLE_FIELDS = (
    "name",
    "band",
    "birth_date",
    "registration_code",
    "sex",
    "father_id",
    "mother_id",
)


class RecordStore(Protocol):
    """Narrow interface the engine needs from the durable record store."""

    def get(self, individual_id: str) -> Individual | None: ...

    def get_by_band(self, band: str) -> Individual | None: ...

    def find(
        self,
        *,
        father_id: str | None = None,
        mother_id: str | None = None,
        sexes: Iterable[Sex] | None = None,
        order_by: str | None = None,
    ) -> list[Individual]: ...

    def create(self, data: dict[str, Any]) -> Individual: ...

    def update(self, individual_id: str, data: dict[str, Any]) -> Individual: ...

    def delete(self, individual_id: str) -> None: ...

    def all(self) -> list[Individual]: ...


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore:
    """Dict-backed store. Returns copies so callers never alias stored rows."""

    def __init__(self, individuals: Iterable[Individual] = ()):
        self._rows: dict[str, Individual] = {}
        for individual in individuals:
            self._rows[individual.id] = replace(individual)

    def get(self, individual_id: str) -> Individual | None:
        row = self._rows.get(individual_id)
        return replace(row) if row else None

    def get_by_band(self, band: str) -> Individual | None:
        for row in self._rows.values():
            if row.band == band:
                return replace(row)
        return None

    def find(
        self,
        *,
        father_id: str | None = None,
        mother_id: str | None = None,
        sexes: Iterable[Sex] | None = None,
        order_by: str | None = None,
    ) -> list[Individual]:
        wanted = set(sexes) if sexes is not None else None
        rows = [
            replace(row)
            for row in self._rows.values()
            if (father_id is None or row.father_id == father_id)
            and (mother_id is None or row.mother_id == mother_id)
            and (wanted is None or row.sex in wanted)
        ]
        if order_by:
            rows.sort(key=lambda row: getattr(row, order_by))
        return rows

    def create(self, data: dict[str, Any]) -> Individual:
        if self.get_by_band(data["band"]) is not None:
            raise DuplicateBandError(data["band"])
        now = utcnow()
        values = {key: data.get(key) for key in WRITABLE_FIELDS}
        row = Individual(id=new_id(), created_at=now, updated_at=now, **values)
        self._rows[row.id] = row
        return replace(row)

    def update(self, individual_id: str, data: dict[str, Any]) -> Individual:
        row = self._rows.get(individual_id)
        if row is None:
            raise IndividualNotFoundError(individual_id)
        changes = {key: value for key, value in data.items() if key in WRITABLE_FIELDS}
        if "band" in changes:
            holder = self.get_by_band(changes["band"])
            if holder is not None and holder.id != individual_id:
                raise DuplicateBandError(changes["band"])
        updated = replace(row, updated_at=utcnow(), **changes)
        self._rows[individual_id] = updated
        return replace(updated)

    def delete(self, individual_id: str) -> None:
        if self._rows.pop(individual_id, None) is None:
            raise IndividualNotFoundError(individual_id)
        # Children keep existing with the deleted parent cleared.
        for child_id, row in self._rows.items():
            if row.father_id == individual_id:
                row = self._rows[child_id] = replace(row, father_id=None)
            if row.mother_id == individual_id:
                self._rows[child_id] = replace(row, mother_id=None)

    def all(self) -> list[Individual]:
        return [replace(row) for row in self._rows.values()]
