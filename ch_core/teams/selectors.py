from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from ch_core.teams.models import Team


def teams_for_organization(*, organization_id: UUID, active_only: bool = True) -> QuerySet[Team]:
    qs = Team.objects.filter(organization_id=organization_id)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def team_by_id(*, organization_id: UUID, team_id: UUID) -> Team:
    obj = Team.objects.filter(id=team_id, organization_id=organization_id).first()
    if obj is None:
        raise NotFound("Team not found in this organization.")
    return obj
