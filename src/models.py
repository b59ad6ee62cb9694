"""Data classes for aviary pedigree entities."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNDETERMINED = "UNDETERMINED"


FATHER_SEXES = frozenset({Sex.MALE, Sex.UNDETERMINED})
MOTHER_SEXES = frozenset({Sex.FEMALE, Sex.UNDETERMINED})


def is_compatible_father(sex: Sex) -> bool:
    """True if a bird of this sex may be recorded as a father."""
    return Sex(sex) in FATHER_SEXES


def is_compatible_mother(sex: Sex) -> bool:
    """True if a bird of this sex may be recorded as a mother."""
    return Sex(sex) in MOTHER_SEXES


@dataclass
class Individual:
    id: str
    name: str
    band: str
    birth_date: date | None
    registration_code: str
    sex: Sex
    father_id: str | None = None
    mother_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "band": self.band,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "registration_code": self.registration_code,
            "sex": self.sex.value,
            "father_id": self.father_id,
            "mother_id": self.mother_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ParentSummary:
    """Reduced view of a co-parent attached to a child listing."""

    id: str
    name: str
    band: str

    @classmethod
    def of(cls, individual: Individual) -> "ParentSummary":
        return cls(id=individual.id, name=individual.name, band=individual.band)


@dataclass(frozen=True)
class ParentCandidate:
    id: str
    name: str
    band: str
    sex: Sex
    birth_date: date | None

    @classmethod
    def of(cls, individual: Individual) -> "ParentCandidate":
        return cls(
            id=individual.id,
            name=individual.name,
            band=individual.band,
            sex=individual.sex,
            birth_date=individual.birth_date,
        )


@dataclass
class Child:
    individual: Individual
    other_parent: ParentSummary | None


@dataclass
class PedigreeNode:
    individual: Individual
    father: "PedigreeNode | None" = None
    mother: "PedigreeNode | None" = None

    def to_dict(self) -> dict[str, Any]:
        data = self.individual.to_dict()
        data["father"] = self.father.to_dict() if self.father else None
        data["mother"] = self.mother.to_dict() if self.mother else None
        return data


@dataclass(frozen=True)
class PedigreeStatistics:
    total_ancestors: int
    generations: int


@dataclass
class PedigreeTree:
    root: PedigreeNode
    statistics: PedigreeStatistics = field(
        default_factory=lambda: PedigreeStatistics(total_ancestors=0, generations=1)
    )

    def to_dict(self) -> dict[str, Any]:
        data = self.root.to_dict()
        data["statistics"] = {
            "total_ancestors": self.statistics.total_ancestors,
            "generations": self.statistics.generations,
        }
        return data
