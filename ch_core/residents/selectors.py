# ch_core/residents/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from ch_core.common.ownership import get_owned
from ch_core.residents.models import Resident


def get_owned_resident(*, organization_id: UUID, resident_id: UUID, for_update: bool = False) -> Resident:
    return get_owned(
        Resident,
        organization_id=organization_id,
        pk=resident_id,
        label="Resident",
        for_update=for_update,
    )


def search_residents(
    *,
    organization_id: UUID,
    team_id: UUID,
    q: str | None = None,
    active_only: bool = True,
) -> QuerySet[Resident]:
    qs = Resident.objects.filter(organization_id=organization_id, team_id=team_id)
    if active_only:
        qs = qs.filter(is_active=True)

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(nhs_number__icontains=qv)
            | Q(room_number__iexact=qv)
        )

    return qs.order_by("last_name", "first_name")
