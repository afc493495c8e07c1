# ch_core/teams/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from ch_core.teams.models import Team, TeamType


@dataclass(frozen=True)
class TeamUpdate:
    name: Optional[str] = None
    team_type: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    is_active: Optional[bool] = None


class TeamService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        name: str,
        code: str,
        team_type: str = TeamType.CARE_HOME,
        phone: str = "",
        email: str = "",
        address_line1: str = "",
        city: str = "",
        postcode: str = "",
    ) -> Team:
        if team_type not in TeamType.values:
            raise ValidationError({"team_type": "Invalid team_type."})
        if Team.objects.filter(organization_id=organization_id, code=code).exists():
            raise ValidationError({"code": "A team with this code already exists in the organization."})

        return Team.objects.create(
            organization_id=organization_id,
            name=name,
            code=code,
            team_type=team_type,
            phone=phone or "",
            email=email or "",
            address_line1=address_line1 or "",
            city=city or "",
            postcode=postcode or "",
        )

    @staticmethod
    @transaction.atomic
    def update(*, organization_id: UUID, team_id: UUID, patch: TeamUpdate) -> Team:
        team = Team.objects.select_for_update().filter(id=team_id, organization_id=organization_id).first()
        if team is None:
            raise NotFound("Team not found in this organization.")

        if patch.team_type is not None and patch.team_type not in TeamType.values:
            raise ValidationError({"team_type": "Invalid team_type."})

        for field in ("name", "team_type", "phone", "email", "address_line1", "city", "postcode", "is_active"):
            value = getattr(patch, field)
            if value is not None:
                setattr(team, field, value)

        team.save()
        return team
