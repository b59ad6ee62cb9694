"""Integrity rules applied before any pedigree edge is written, plus a registry audit."""

from collections.abc import Mapping
from datetime import date
from typing import Any

import networkx as nx

from errors import (
    CircularAncestryError,
    DuplicateBandError,
    FutureBirthDateError,
    InvalidBirthOrderError,
    InvalidParentSexError,
    ParentNotFoundError,
    SelfParentError,
)
from logging_config import get_logger
from models import (
    FATHER_SEXES,
    MOTHER_SEXES,
    Individual,
    Sex,
    is_compatible_father,
    is_compatible_mother,
)
from store import RecordStore

logger = get_logger(__name__)

# role -> (payload key, compatibility rule, allowed sexes)
PARENT_ROLES = {
    "father": ("father_id", is_compatible_father, FATHER_SEXES),
    "mother": ("mother_id", is_compatible_mother, MOTHER_SEXES),
}


def is_band_unique(store: RecordStore, band: str, exclude_id: str | None = None) -> bool:
    """True if no other individual carries ``band``.

    The record identified by ``exclude_id`` does not count as a conflict, so an
    update may keep its own band.
    """
    existing = store.get_by_band(band)
    if existing is None:
        return True
    return exclude_id is not None and existing.id == exclude_id


def assert_band_unique(store: RecordStore, band: str, exclude_id: str | None = None) -> None:
    if not is_band_unique(store, band, exclude_id):
        raise DuplicateBandError(band)


def validate_birth_date(birth_date: date | None, today: date | None = None) -> None:
    """Reject birth dates later than today. Unknown dates pass."""
    if birth_date is None:
        return
    today = today or date.today()
    if birth_date > today:
        raise FutureBirthDateError(birth_date)


def _ancestry_reaches(store: RecordStore, start_id: str, target_id: str) -> bool:
    """Depth-first walk up from ``start_id``; True if ``target_id`` is met.

    Each individual is expanded at most once, so diamond-shaped ancestries stay
    linear and a cycle already present in the store cannot loop forever.
    """
    visited: set[str] = set()
    stack = [start_id]
    while stack:
        current_id = stack.pop()
        if current_id == target_id:
            return True
        if current_id in visited:
            continue
        visited.add(current_id)

        ancestor = store.get(current_id)
        if ancestor is None:
            # Broken reference: no further ancestry known on this branch
            continue
        for parent_id in (ancestor.mother_id, ancestor.father_id):
            if parent_id and parent_id not in visited:
                stack.append(parent_id)
    return False


def would_create_cycle(
    store: RecordStore,
    individual_id: str,
    father_id: str | None = None,
    mother_id: str | None = None,
) -> bool:
    """True if making the proposed parents ancestors of ``individual_id`` closes a loop."""
    for parent_id in (father_id, mother_id):
        if parent_id and _ancestry_reaches(store, parent_id, individual_id):
            return True
    return False


def _check_birth_order(role: str, child_birth: date | None, parent: Individual) -> None:
    if child_birth is not None and parent.birth_date is not None:
        if child_birth <= parent.birth_date:
            raise InvalidBirthOrderError(role, child_birth, parent.birth_date)


def _check_parent(
    store: RecordStore, role: str, parent_id: str, child_birth: date | None
) -> Individual:
    _, compatible, allowed = PARENT_ROLES[role]
    parent = store.get(parent_id)
    if parent is None:
        raise ParentNotFoundError(role, parent_id)
    if not compatible(parent.sex):
        raise InvalidParentSexError(role, parent.sex, allowed)
    _check_birth_order(role, child_birth, parent)
    return parent


def validate_parentage(
    store: RecordStore,
    individual_id: str | None,
    data: Mapping[str, Any],
) -> None:
    """Admit or reject the parent references in ``data``.

    ``individual_id`` is None for a creation. Rules run in a fixed order and
    the first violation raises:

    1. an individual cannot be its own father or mother
    2. father exists and is MALE or UNDETERMINED
    3. father was born strictly before the child, when both dates are known
    4. mother exists and is FEMALE or UNDETERMINED
    5. mother was born strictly before the child, when both dates are known
    6. on update, the proposed parents must not descend from the individual
    """
    father_id = data.get("father_id")
    mother_id = data.get("mother_id")
    child_birth = data.get("birth_date")

    if individual_id and individual_id in (father_id, mother_id):
        raise SelfParentError(individual_id)

    if father_id:
        _check_parent(store, "father", father_id, child_birth)
    if mother_id:
        _check_parent(store, "mother", mother_id, child_birth)

    if individual_id and (father_id or mother_id):
        if would_create_cycle(store, individual_id, father_id, mother_id):
            raise CircularAncestryError(individual_id)


def validate_parents_birth_order(
    store: RecordStore, child_birth: date | None, parents: Mapping[str, str | None]
) -> None:
    """Check newly linked parents (role -> id) against a child's stored birth date."""
    for role, parent_id in parents.items():
        parent = store.get(parent_id) if parent_id else None
        if parent is not None:
            _check_birth_order(role, child_birth, parent)


def validate_birth_date_change(
    store: RecordStore,
    individual: Individual,
    birth_date: date | None,
    skip_roles: tuple[str, ...] = (),
) -> None:
    """Keep birth ordering intact when an existing individual's birth date changes.

    Parents named in ``skip_roles`` are being replaced in the same update and
    were already checked by validate_parentage.
    """
    if birth_date is None:
        return
    for role, (key, _, _) in PARENT_ROLES.items():
        parent_id = getattr(individual, key)
        if role in skip_roles or not parent_id:
            continue
        parent = store.get(parent_id)
        if parent is not None:
            _check_birth_order(role, birth_date, parent)

    for role, (key, _, _) in PARENT_ROLES.items():
        for child in store.find(**{key: individual.id}):
            if child.birth_date is not None and child.birth_date <= birth_date:
                raise InvalidBirthOrderError(role, child.birth_date, birth_date)


def validate_sex_change(store: RecordStore, individual: Individual, sex: Sex) -> None:
    """Reject a sex change that would leave existing children with an incompatible parent."""
    for role, (key, compatible, allowed) in PARENT_ROLES.items():
        if compatible(sex):
            continue
        if store.find(**{key: individual.id}):
            raise InvalidParentSexError(role, sex, allowed)


def validate_graph(G: nx.DiGraph) -> list[str]:
    """
    Audit a registry graph built by graph.build_graph for:
    - Cycles in parent-child relationships
    - Children born on or before a parent
    - Parents whose sex does not fit the role they are recorded in
    - Parent references to individuals that do not exist

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    # Only PARENT_OF edges take part in the cycle search
    parent_graph = nx.DiGraph(
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    )
    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [G.nodes[edge[0]].get("band", edge[0]) for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    for parent, child, data in G.edges(data=True):
        if data.get("relationship_type") != "PARENT_OF":
            continue

        role = data.get("role")
        parent_data = G.nodes[parent]
        child_data = G.nodes[child]

        parent_birth = parent_data.get("birth_date")
        child_birth = child_data.get("birth_date")
        if parent_birth and child_birth and child_birth <= parent_birth:
            warnings.append(
                f"Impossible: {child_data.get('bird_name')} ({child_data.get('band')}) "
                f"born on or before {role} {parent_data.get('bird_name')} "
                f"({parent_data.get('band')})"
            )

        _, compatible, _ = PARENT_ROLES[role]
        if not compatible(parent_data["sex"]):
            warnings.append(
                f"Invalid {role}: {parent_data.get('bird_name')} ({parent_data.get('band')}) "
                f"has sex {parent_data['sex'].value}"
            )

    for child, role, missing_id in G.graph.get("dangling", []):
        warnings.append(
            f"Broken reference: {G.nodes[child].get('bird_name')} ({G.nodes[child].get('band')}) "
            f"names missing {role} {missing_id}"
        )

    logger.info("graph_validated", nodes=G.number_of_nodes(), warnings=len(warnings))
    return warnings
