"""Pedigree engine entry point: validated mutations and pedigree queries."""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from config import MAX_GENERATIONS
from errors import GenealogyError, IndividualNotFoundError, ValidationError
from graph import build_graph, pedigree_subgraph
from logging_config import get_logger
from models import Child, Individual, ParentCandidate, PedigreeTree, Sex
from pedigree import build_tree
from queries import available_fathers, available_mothers, find_children
from store import WRITABLE_FIELDS, RecordStore
from validation import (
    PARENT_ROLES,
    assert_band_unique,
    validate_birth_date,
    validate_birth_date_change,
    validate_graph,
    validate_parentage,
    validate_parents_birth_order,
    validate_sex_change,
)

logger = get_logger(__name__)

REQUIRED_FIELDS = ("name", "band", "registration_code", "sex")


def normalize_payload(data: Mapping[str, Any]) -> dict[str, Any]:
    """Keep writable fields only and coerce dates and sex to their model types.

    Any ``id`` in the payload is dropped; ids belong to the store.
    """
    payload = {key: value for key, value in data.items() if key in WRITABLE_FIELDS}
    birth_date = payload.get("birth_date")
    if isinstance(birth_date, datetime):
        payload["birth_date"] = birth_date.date()
    elif isinstance(birth_date, str):
        try:
            payload["birth_date"] = date.fromisoformat(birth_date[:10])
        except ValueError as exc:
            raise ValidationError(f"Invalid birth date {birth_date!r}") from exc
    if payload.get("sex") is not None:
        try:
            payload["sex"] = Sex(payload["sex"])
        except ValueError as exc:
            raise ValidationError(
                f"Sex must be one of {', '.join(s.value for s in Sex)}, got {payload['sex']!r}"
            ) from exc
    for key in ("father_id", "mother_id"):
        # An empty reference clears the parent
        if key in payload and not payload[key]:
            payload[key] = None
    return payload


class PedigreeService:
    """Stateless engine over an injected record store.

    Every mutation is validated in full before the store is written, so a
    rejected request leaves no partial change behind.
    """

    def __init__(self, store: RecordStore, today: date | None = None):
        self.store = store
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def create(self, data: Mapping[str, Any]) -> Individual:
        payload = normalize_payload(data)
        try:
            missing = [key for key in REQUIRED_FIELDS if not payload.get(key)]
            if missing:
                raise ValidationError(
                    f"Missing required field(s): {', '.join(missing)}", fields=missing
                )
            assert_band_unique(self.store, payload["band"])
            validate_birth_date(payload.get("birth_date"), self.today)
            validate_parentage(self.store, None, payload)
        except GenealogyError as exc:
            logger.info("create_rejected", error=type(exc).__name__, reason=exc.message)
            raise

        individual = self.store.create(payload)
        logger.info("individual_created", id=individual.id, band=individual.band)
        return individual

    def update(self, individual_id: str, data: Mapping[str, Any]) -> Individual:
        current = self.store.get(individual_id)
        if current is None:
            raise IndividualNotFoundError(individual_id)

        payload = normalize_payload(data)
        try:
            self._validate_update(current, payload)
        except GenealogyError as exc:
            logger.info(
                "update_rejected", id=individual_id, error=type(exc).__name__, reason=exc.message
            )
            raise

        individual = self.store.update(individual_id, payload)
        logger.info("individual_updated", id=individual_id, fields=sorted(payload))
        return individual

    def _validate_update(self, current: Individual, payload: dict[str, Any]) -> None:
        for key in REQUIRED_FIELDS:
            if key in payload and not payload[key]:
                raise ValidationError(f"Field {key} cannot be empty", fields=[key])

        if "band" in payload:
            assert_band_unique(self.store, payload["band"], exclude_id=current.id)

        if "birth_date" in payload:
            validate_birth_date(payload["birth_date"], self.today)

        changed_roles = tuple(
            role for role, (key, _, _) in PARENT_ROLES.items() if key in payload
        )
        if changed_roles:
            validate_parentage(self.store, current.id, payload)
            if "birth_date" not in payload:
                # New parents must also predate the birth date already on record
                validate_parents_birth_order(
                    self.store,
                    current.birth_date,
                    {role: payload[PARENT_ROLES[role][0]] for role in changed_roles},
                )

        if payload.get("birth_date") is not None:
            validate_birth_date_change(
                self.store, current, payload["birth_date"], skip_roles=changed_roles
            )

        if "sex" in payload and payload["sex"] != current.sex:
            validate_sex_change(self.store, current, payload["sex"])

    def delete(self, individual_id: str) -> None:
        """Remove an individual; children keep existing with that parent cleared."""
        self.store.delete(individual_id)
        logger.info("individual_deleted", id=individual_id)

    def get(self, individual_id: str) -> Individual:
        individual = self.store.get(individual_id)
        if individual is None:
            raise IndividualNotFoundError(individual_id)
        return individual

    def build_tree(self, individual_id: str, max_generations: int = 5) -> PedigreeTree:
        return build_tree(self.store, individual_id, max_generations)

    def find_children(self, individual_id: str) -> list[Child]:
        return find_children(self.store, individual_id)

    def available_fathers(self) -> list[ParentCandidate]:
        return available_fathers(self.store)

    def available_mothers(self) -> list[ParentCandidate]:
        return available_mothers(self.store)

    def audit(
        self, individual_id: str | None = None, generations: int = MAX_GENERATIONS
    ) -> list[str]:
        """Check the registry, including records written outside the engine.

        With ``individual_id`` only that bird's pedigree is checked.
        """
        G = build_graph(self.store.all())
        if individual_id is not None:
            if individual_id not in G:
                raise IndividualNotFoundError(individual_id)
            G = pedigree_subgraph(G, individual_id, generations)
        return validate_graph(G)
