# ch_core/iam/scope.py
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from rest_framework.exceptions import PermissionDenied, ValidationError

from ch_core.iam.services.membership import is_user_member_of_team


@dataclass(frozen=True)
class Scope:
    organization_id: UUID
    team_id: UUID


HDR_ORGANIZATION = "X-Organization-Id"
HDR_TEAM = "X-Team-Id"

MISSING_SCOPE_MSG = "Missing scope headers. Provide X-Organization-Id and X-Team-Id."
INVALID_SCOPE_MSG = "Invalid scope headers. Provide valid UUIDs for X-Organization-Id and X-Team-Id."
NOT_A_MEMBER_MSG = "You do not have access to the selected team."


def _get_header(request, name: str) -> str | None:
    # request.headers is case-insensitive; fall back to META for RequestFactory requests.
    headers = getattr(request, "headers", None)
    if headers is not None:
        value = headers.get(name)
        if value:
            return value
    return request.META.get("HTTP_" + name.upper().replace("-", "_"))


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def resolve_scope_from_headers(request) -> Scope | None:
    """
    Reads scope headers. Returns Scope if both are present and valid.
    - Neither present: None.
    - Only one present: 400 with MISSING_SCOPE_MSG.
    - Not UUIDs: 400 with INVALID_SCOPE_MSG.
    """
    org_raw = _get_header(request, HDR_ORGANIZATION)
    team_raw = _get_header(request, HDR_TEAM)

    if not org_raw and not team_raw:
        return None

    if not org_raw or not team_raw:
        raise ValidationError(MISSING_SCOPE_MSG)

    organization_id = _parse_uuid(org_raw)
    team_id = _parse_uuid(team_raw)
    if organization_id is None or team_id is None:
        raise ValidationError(INVALID_SCOPE_MSG)
    return Scope(organization_id=organization_id, team_id=team_id)


def assert_user_membership(user, scope: Scope) -> None:
    if not user or not getattr(user, "is_authenticated", False):
        raise PermissionDenied("Authentication required to set scope.")

    ok = is_user_member_of_team(
        user_id=user.id,
        organization_id=scope.organization_id,
        team_id=scope.team_id,
    )
    if not ok:
        raise PermissionDenied(NOT_A_MEMBER_MSG)


def apply_scope_from_headers(request, user=None) -> Scope | None:
    """
    Used by the auth layer once the user is known.

    With headers present: validates them, verifies membership and attaches
    request.scope / request.organization_id / request.team_id.
    Without headers: returns None and does nothing.
    """
    scope = resolve_scope_from_headers(request)
    if scope is None:
        return None

    assert_user_membership(user or getattr(request, "user", None), scope)

    request.organization_id = scope.organization_id
    request.team_id = scope.team_id
    request.scope = scope
    return scope
