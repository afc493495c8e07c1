from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from ch_core.activity.models import ActivityEvent


def list_activity_events(
    *,
    organization_id: UUID,
    team_id: UUID | None = None,
    entity_type: str | None = None,
    entity_id: UUID | None = None,
    event_code: str | None = None,
) -> QuerySet[ActivityEvent]:
    qs = ActivityEvent.objects.filter(organization_id=organization_id)

    if team_id:
        qs = qs.filter(team_id=team_id)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if event_code:
        qs = qs.filter(event_code=event_code)

    return qs.order_by("-occurred_at")
