from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from ch_core.organizations.models import Organization


def organizations_for_user(*, user_id: int) -> QuerySet[Organization]:
    """Organizations the user holds at least one active team membership in."""
    return (
        Organization.objects.filter(
            team_memberships__user_profile__user_id=user_id,
            team_memberships__is_active=True,
        )
        .distinct()
        .order_by("name")
    )


def get_organization(*, organization_id: UUID) -> Organization:
    obj = Organization.objects.filter(id=organization_id).first()
    if obj is None:
        raise NotFound("Organization not found.")
    return obj
