"""Typed errors raised by the pedigree engine.

Every error carries a ``category`` that tells the caller how to report it:
``"validation"`` for rejected input, ``"not_found"`` for missing records.
"""

from typing import Any


class GenealogyError(Exception):
    category = "internal"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(GenealogyError):
    category = "validation"


class DuplicateBandError(ValidationError):
    def __init__(self, band: str):
        super().__init__(f"Band {band!r} is already registered", band=band)


class FutureBirthDateError(ValidationError):
    def __init__(self, birth_date):
        super().__init__(
            f"Birth date {birth_date} cannot be in the future", birth_date=str(birth_date)
        )


class SelfParentError(ValidationError):
    def __init__(self, individual_id: str):
        super().__init__(
            "An individual cannot be its own father or mother", individual_id=individual_id
        )


class ParentNotFoundError(ValidationError):
    def __init__(self, role: str, parent_id: str):
        super().__init__(f"{role.capitalize()} {parent_id} not found", role=role, parent_id=parent_id)


class InvalidParentSexError(ValidationError):
    def __init__(self, role: str, sex, allowed):
        allowed_names = " or ".join(sorted(s.value for s in allowed))
        super().__init__(
            f"{role.capitalize()} must have sex {allowed_names}, got {sex.value}",
            role=role,
            sex=sex.value,
        )


class InvalidBirthOrderError(ValidationError):
    def __init__(self, role: str, child_birth, parent_birth):
        super().__init__(
            f"Birth date {child_birth} must be later than the {role}'s birth date {parent_birth}",
            role=role,
            child_birth=str(child_birth),
            parent_birth=str(parent_birth),
        )


class CircularAncestryError(ValidationError):
    def __init__(self, individual_id: str):
        super().__init__(
            "Circular reference detected in the pedigree: the individual would become "
            "its own ancestor",
            individual_id=individual_id,
        )


class TreeDepthExceededError(ValidationError):
    def __init__(self, requested: int, limit: int):
        super().__init__(
            f"At most {limit} generations may be requested, got {requested}",
            requested=requested,
            limit=limit,
        )


class NotFoundError(GenealogyError):
    category = "not_found"


class RootNotFoundError(NotFoundError):
    def __init__(self, individual_id: str):
        super().__init__(f"Individual {individual_id} not found", individual_id=individual_id)


class IndividualNotFoundError(NotFoundError):
    def __init__(self, individual_id: str):
        super().__init__(f"Individual {individual_id} not found", individual_id=individual_id)
