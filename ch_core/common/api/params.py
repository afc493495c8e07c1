from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotFound, ValidationError


def parse_bool(v) -> bool:
    if v is None:
        return False
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_uuid(value, field: str, *, required: bool = False) -> UUID | None:
    """Query-string UUID -> UUID. Bad input is a 400 on that field."""
    if value in (None, ""):
        if required:
            raise ValidationError({field: "This field is required."})
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError({field: "Must be a valid UUID."})


def pk_uuid(pk, label: str = "Object") -> UUID:
    """URL pk -> UUID. A malformed id cannot exist, so it is a 404."""
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound(f"{label} not found.")
