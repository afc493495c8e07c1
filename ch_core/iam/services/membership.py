# ch_core/iam/services/membership.py
from __future__ import annotations

from uuid import UUID

from ch_core.iam.models import TeamMembership


def list_user_teams(user_id: int) -> list[dict]:
    """
    Team memberships for /me and session bootstrap.

    Graph: auth_user -> UserProfile -> TeamMembership -> Team (+ Organization)
    """
    qs = (
        TeamMembership.objects.select_related("team", "organization", "role")
        .filter(user_profile__user_id=user_id, is_active=True, user_profile__is_active=True)
        .order_by("team__name")
    )

    return [
        {
            "organization_id": str(m.organization_id),
            "organization_code": m.organization.code,
            "team_id": str(m.team_id),
            "team_code": m.team.code,
            "team_name": m.team.name,
            "role_code": m.role.code,
            "role_name": m.role.name,
            "is_primary": m.is_primary,
        }
        for m in qs
    ]


def is_user_member_of_team(*, user_id: int, organization_id: UUID, team_id: UUID) -> bool:
    """Single source of truth for scope enforcement."""
    return TeamMembership.objects.filter(
        is_active=True,
        organization_id=organization_id,
        team_id=team_id,
        user_profile__user_id=user_id,
        user_profile__is_active=True,
    ).exists()


def display_name_for(user) -> str:
    """Name recorded on audits when the client does not send one."""
    profile = getattr(user, "care_profile", None)
    if profile is not None and profile.display_name:
        return profile.display_name
    full = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return full or getattr(user, "username", "") or ""
