"""Read-side queries: direct descendants and parent candidates."""

from models import FATHER_SEXES, MOTHER_SEXES, Child, ParentCandidate, ParentSummary
from store import RecordStore


def find_children(store: RecordStore, individual_id: str) -> list[Child]:
    """
    Return the direct children of ``individual_id``, each annotated with the
    co-parent (the parent that is not ``individual_id``).

    Children found through both the father and the mother reference appear
    once. An unknown id simply has no children.
    """
    by_id: dict[str, Child] = {}
    hits = store.find(father_id=individual_id) + store.find(mother_id=individual_id)
    for individual in hits:
        if individual.id in by_id:
            continue
        other_id = (
            individual.mother_id if individual.father_id == individual_id else individual.father_id
        )
        other = store.get(other_id) if other_id and other_id != individual_id else None
        by_id[individual.id] = Child(
            individual=individual,
            other_parent=ParentSummary.of(other) if other else None,
        )
    return list(by_id.values())


def available_fathers(store: RecordStore) -> list[ParentCandidate]:
    """Individuals that may be recorded as a father (MALE or UNDETERMINED), by name."""
    return [
        ParentCandidate.of(individual)
        for individual in store.find(sexes=FATHER_SEXES, order_by="name")
    ]


def available_mothers(store: RecordStore) -> list[ParentCandidate]:
    """Individuals that may be recorded as a mother (FEMALE or UNDETERMINED), by name."""
    return [
        ParentCandidate.of(individual)
        for individual in store.find(sexes=MOTHER_SEXES, order_by="name")
    ]
