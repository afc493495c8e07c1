# ch_core/residents/services.py
from __future__ import annotations

from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ch_core.activity.services import ActivityService
from ch_core.residents.models import Resident
from ch_core.residents.selectors import get_owned_resident

UPDATABLE_FIELDS = {"first_name", "last_name", "date_of_birth", "nhs_number", "room_number", "admitted_on", "is_active"}


class ResidentService:
    @staticmethod
    @transaction.atomic
    def create_resident(
        *,
        organization_id: UUID,
        team_id: UUID,
        actor_user_id: int | None,
        first_name: str,
        last_name: str,
        date_of_birth=None,
        nhs_number: str = "",
        room_number: str = "",
        admitted_on=None,
    ) -> Resident:
        try:
            with transaction.atomic():
                resident = Resident.objects.create(
                    organization_id=organization_id,
                    team_id=team_id,
                    first_name=first_name,
                    last_name=last_name,
                    date_of_birth=date_of_birth,
                    nhs_number=nhs_number or "",
                    room_number=room_number or "",
                    admitted_on=admitted_on,
                )
        except IntegrityError:
            raise ValidationError({"nhs_number": "NHS number already registered in this organization."})

        ActivityService.log(
            event_code="resident.created",
            entity_type="Resident",
            entity_id=resident.id,
            organization_id=organization_id,
            team_id=team_id,
            actor_user_id=actor_user_id,
        )
        return resident

    @staticmethod
    @transaction.atomic
    def update_resident(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        resident_id: UUID,
        data: dict,
    ) -> Resident:
        resident = get_owned_resident(organization_id=organization_id, resident_id=resident_id)

        updates = {k: v for k, v in (data or {}).items() if k in UPDATABLE_FIELDS}
        for k, v in updates.items():
            setattr(resident, k, v)

        try:
            with transaction.atomic():
                resident.save()
        except IntegrityError:
            raise ValidationError({"nhs_number": "NHS number already registered in this organization."})

        ActivityService.log(
            event_code="resident.updated",
            entity_type="Resident",
            entity_id=resident.id,
            organization_id=resident.organization_id,
            team_id=resident.team_id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates)},
        )
        return resident
