# ch_core/activity/models.py
from django.conf import settings
from django.db import models

from ch_core.common.models import ScopedModel


class ActivityEvent(ScopedModel):
    """
    Immutable record of who changed what (templates, completions, plans, PDFs).
    Kept apart from the audit domain itself: this is the system's change log.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "audit.completion.completed"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "AuditCompletion"
    entity_id = models.UUIDField(db_index=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="activity_events",
        null=True,
        blank=True,
    )

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "activity_activity_event"
        indexes = [
            models.Index(fields=["organization_id", "occurred_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
        ]
