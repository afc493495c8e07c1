# ch_core/activity/services.py
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from ch_core.activity.models import ActivityEvent
from ch_core.common.logging import get_logger

log = get_logger(__name__)


def _jsonable(metadata: Dict[str, Any]) -> Dict[str, Any]:
    # UUIDs and datetimes show up in metadata; JSONField wants plain values.
    out: Dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, UUID):
            value = str(value)
        elif hasattr(value, "isoformat"):
            value = value.isoformat()
        out[key] = value
    return out


class ActivityService:
    """
    Central change-log writer. Runs inside the caller's transaction so the
    log row commits (or rolls back) together with the change it describes.
    """

    @staticmethod
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        organization_id: UUID,
        team_id: UUID,
        actor_user_id: int | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityEvent:
        event = ActivityEvent.objects.create(
            organization_id=organization_id,
            team_id=team_id,
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor_user_id,
            metadata=_jsonable(metadata or {}),
        )
        log.info("{} {} {} by user={}", event_code, entity_type, entity_id, actor_user_id)
        return event
