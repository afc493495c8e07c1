# ch_core/pdf/models.py
from __future__ import annotations

from django.db import models

from ch_core.common.models import ScopedModel


class PdfSubjectType(models.TextChoices):
    AUDIT_COMPLETION = "audit_completion", "Audit completion"
    ASSESSMENT = "assessment", "Assessment"


class PdfJobStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"


class PdfJob(ScopedModel):
    """
    Outbox row for one background render. Keeps "not rendered yet" and
    "rendering failed" apart; the subject's pdf_* fields are only patched
    on success.
    """
    subject_type = models.CharField(max_length=32, choices=PdfSubjectType.choices, db_index=True)
    subject_id = models.UUIDField(db_index=True)

    status = models.CharField(
        max_length=16,
        choices=PdfJobStatus.choices,
        default=PdfJobStatus.PENDING,
        db_index=True,
    )
    attempts = models.PositiveIntegerField(default=0)
    error_details = models.TextField(blank=True, default="")
    file = models.CharField(max_length=500, blank=True, default="")

    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "pdf_job"
        indexes = [
            models.Index(fields=["subject_type", "subject_id", "created_at"]),
            models.Index(fields=["organization_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.subject_type}:{self.subject_id} [{self.status}]"
