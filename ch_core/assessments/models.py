# ch_core/assessments/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from ch_core.common.models import PdfArtifactMixin, ScopedModel
from ch_core.residents.models import Resident


class FormType(models.TextChoices):
    ADMISSION = "admission", "Admission assessment"
    DNACPR = "dnacpr", "DNACPR"
    PEEP = "peep", "Personal emergency evacuation plan"
    SKIN_INTEGRITY = "skin-integrity", "Skin integrity (Braden)"
    PRE_ADMISSION = "pre-admission", "Pre-admission"
    INFECTION_PREVENTION = "infection-prevention", "Infection prevention"
    MOVING_HANDLING = "moving-handling", "Moving and handling"
    PAIN_ASSESSMENT = "pain-assessment", "Pain assessment"
    CARE_PLAN = "care-plan", "Care plan"


class AssessmentStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    REVIEWED = "reviewed", "Reviewed"


class Assessment(ScopedModel, PdfArtifactMixin):
    """
    Append-only clinical form. Submitting, reviewing and amending each insert
    a new row pointing back at the one it supersedes; only drafts are edited
    in place.
    """
    resident = models.ForeignKey(Resident, on_delete=models.PROTECT, related_name="assessments")
    form_type = models.CharField(max_length=32, choices=FormType.choices, db_index=True)

    status = models.CharField(max_length=16, choices=AssessmentStatus.choices, db_index=True)
    data = models.JSONField(default=dict, blank=True)
    version = models.PositiveIntegerField(default=1)

    # Unique: at most one successor per row.
    supersedes = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="superseded_by",
    )
    idempotency_key = models.CharField(max_length=255, null=True, blank=True, db_index=True)

    submitted_at = models.DateTimeField(null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_assessments",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_assessments",
    )

    class Meta:
        db_table = "assessments_assessment"
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "resident", "form_type", "idempotency_key"],
                condition=Q(status=AssessmentStatus.DRAFT) & Q(idempotency_key__isnull=False),
                name="uq_assessment_idempo_draft",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_id", "resident", "form_type", "created_at"]),
            models.Index(fields=["team_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.form_type} v{self.version} {self.status} ({self.resident_id})"
