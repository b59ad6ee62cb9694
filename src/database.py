"""SQLite record store for the aviary registry."""

from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any
import sqlite3

from errors import DuplicateBandError, IndividualNotFoundError, ParentNotFoundError
from logging_config import get_logger
from models import Individual, Sex
from store import WRITABLE_FIELDS, new_id, utcnow

logger = get_logger(__name__)

COLUMNS = (
    "id",
    "name",
    "band",
    "birth_date",
    "registration_code",
    "sex",
    "father_id",
    "mother_id",
    "created_at",
    "updated_at",
)

ORDERABLE = {"name", "band", "birth_date", "created_at"}


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (creating if needed) the SQLite database with the individual table."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS individual (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            band TEXT NOT NULL UNIQUE,
            birth_date TEXT,
            registration_code TEXT NOT NULL,
            sex TEXT NOT NULL CHECK (sex IN ('MALE', 'FEMALE', 'UNDETERMINED')),
            father_id TEXT,
            mother_id TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (father_id) REFERENCES individual(id) ON DELETE SET NULL,
            FOREIGN KEY (mother_id) REFERENCES individual(id) ON DELETE SET NULL
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_individual_father ON individual (father_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_individual_mother ON individual (mother_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_individual_sex ON individual (sex)")

    conn.commit()
    return conn


def _to_row_value(key: str, value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if key == "sex" and value is not None:
        return Sex(value).value
    return value


def _from_row(row: sqlite3.Row) -> Individual:
    return Individual(
        id=row["id"],
        name=row["name"],
        band=row["band"],
        birth_date=date.fromisoformat(row["birth_date"]) if row["birth_date"] else None,
        registration_code=row["registration_code"],
        sex=Sex(row["sex"]),
        father_id=row["father_id"],
        mother_id=row["mother_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SqliteStore:
    """RecordStore backed by a SQLite connection.

    The UNIQUE constraint on ``band`` and ``ON DELETE SET NULL`` on the parent
    columns are enforced by SQLite itself, so a create racing another create
    with the same band still fails with DuplicateBandError.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: Path | str) -> "SqliteStore":
        return cls(create_database(db_path))

    def close(self) -> None:
        self.conn.close()

    def _raise_integrity_error(self, exc: sqlite3.IntegrityError, data: dict[str, Any]) -> None:
        """Translate constraint failures into engine errors, re-raising anything else."""
        if "individual.band" in str(exc):
            raise DuplicateBandError(data["band"]) from exc
        if "FOREIGN KEY" in str(exc):
            # A parent vanished between validation and write
            for role in ("father", "mother"):
                parent_id = data.get(f"{role}_id")
                if parent_id and self.get(parent_id) is None:
                    raise ParentNotFoundError(role, parent_id) from exc
        raise exc

    def get(self, individual_id: str) -> Individual | None:
        row = self.conn.execute(
            f"SELECT {', '.join(COLUMNS)} FROM individual WHERE id = ?", (individual_id,)
        ).fetchone()
        return _from_row(row) if row else None

    def get_by_band(self, band: str) -> Individual | None:
        row = self.conn.execute(
            f"SELECT {', '.join(COLUMNS)} FROM individual WHERE band = ?", (band,)
        ).fetchone()
        return _from_row(row) if row else None

    def find(
        self,
        *,
        father_id: str | None = None,
        mother_id: str | None = None,
        sexes: Iterable[Sex] | None = None,
        order_by: str | None = None,
    ) -> list[Individual]:
        clauses: list[str] = []
        params: list[Any] = []
        if father_id is not None:
            clauses.append("father_id = ?")
            params.append(father_id)
        if mother_id is not None:
            clauses.append("mother_id = ?")
            params.append(mother_id)
        if sexes is not None:
            values = [Sex(s).value for s in sexes]
            if not values:
                return []
            clauses.append(f"sex IN ({', '.join('?' for _ in values)})")
            params.extend(values)

        sql = f"SELECT {', '.join(COLUMNS)} FROM individual"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        if order_by:
            if order_by not in ORDERABLE:
                raise ValueError(f"Cannot order by {order_by!r}")
            sql += f" ORDER BY {order_by} ASC"

        return [_from_row(row) for row in self.conn.execute(sql, params).fetchall()]

    def create(self, data: dict[str, Any]) -> Individual:
        now = utcnow()
        values = {key: _to_row_value(key, data.get(key)) for key in WRITABLE_FIELDS}
        values.update(id=new_id(), created_at=now.isoformat(), updated_at=now.isoformat())
        try:
            with self.conn:
                self.conn.execute(
                    f"INSERT INTO individual ({', '.join(COLUMNS)}) "
                    f"VALUES ({', '.join('?' for _ in COLUMNS)})",
                    [values[column] for column in COLUMNS],
                )
        except sqlite3.IntegrityError as exc:
            self._raise_integrity_error(exc, data)
        logger.debug("row_inserted", id=values["id"])
        return self.get(values["id"])

    def update(self, individual_id: str, data: dict[str, Any]) -> Individual:
        changes = {
            key: _to_row_value(key, value) for key, value in data.items() if key in WRITABLE_FIELDS
        }
        changes["updated_at"] = utcnow().isoformat()
        assignments = ", ".join(f"{key} = ?" for key in changes)
        try:
            with self.conn:
                cursor = self.conn.execute(
                    f"UPDATE individual SET {assignments} WHERE id = ?",
                    [*changes.values(), individual_id],
                )
        except sqlite3.IntegrityError as exc:
            self._raise_integrity_error(exc, data)
        if cursor.rowcount == 0:
            raise IndividualNotFoundError(individual_id)
        return self.get(individual_id)

    def delete(self, individual_id: str) -> None:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM individual WHERE id = ?", (individual_id,))
        if cursor.rowcount == 0:
            raise IndividualNotFoundError(individual_id)

    def all(self) -> list[Individual]:
        rows = self.conn.execute(f"SELECT {', '.join(COLUMNS)} FROM individual").fetchall()
        return [_from_row(row) for row in rows]
