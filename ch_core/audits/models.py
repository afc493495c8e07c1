# ch_core/audits/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ch_core.common.models import PdfArtifactMixin, ScopedModel
from ch_core.residents.models import Resident


class AuditDomain(models.TextChoices):
    RESIDENT = "resident", "Resident"
    CARE_FILE = "care_file", "Care file"
    GOVERNANCE = "governance", "Governance"
    CLINICAL = "clinical", "Clinical"
    ENVIRONMENT = "environment", "Environment"


class AuditFrequency(models.TextChoices):
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"
    QUARTERLY = "quarterly", "Quarterly"
    THREE_MONTHS = "3months", "Every 3 months"
    SIX_MONTHS = "6months", "Every 6 months"
    YEARLY = "yearly", "Yearly"
    ADHOC = "adhoc", "Ad hoc"


# Which review intervals each audit domain offers. Plain strings: lookups use raw request values.
DOMAIN_FREQUENCIES = {
    AuditDomain.RESIDENT.value: {"daily", "weekly", "monthly", "quarterly", "yearly", "adhoc"},
    AuditDomain.CARE_FILE.value: {"3months", "6months", "yearly"},
    AuditDomain.GOVERNANCE.value: {"monthly", "quarterly", "6months", "yearly"},
    AuditDomain.CLINICAL.value: {"monthly", "quarterly", "6months", "yearly"},
    AuditDomain.ENVIRONMENT.value: {"monthly", "quarterly", "6months", "yearly"},
}


class TemplateItemType(models.TextChoices):
    COMPLIANCE = "compliance", "Compliance"
    CHECKBOX = "checkbox", "Checkbox"
    NOTES = "notes", "Notes"


class ItemStatus(models.TextChoices):
    COMPLIANT = "compliant", "Compliant"
    NON_COMPLIANT = "non-compliant", "Non-compliant"
    NOT_APPLICABLE = "not-applicable", "Not applicable"
    CHECKED = "checked", "Checked"
    UNCHECKED = "unchecked", "Unchecked"


class CompletionStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    IN_PROGRESS = "in-progress", "In progress"
    COMPLETED = "completed", "Completed"


OPEN_STATUSES = (CompletionStatus.DRAFT, CompletionStatus.IN_PROGRESS)


class AuditTemplate(ScopedModel):
    """
    Checklist definition for one audit domain.

    Edited in place; completions snapshot what they need (name, items,
    frequency) so later edits never rewrite past audits.
    """
    domain = models.CharField(max_length=32, choices=AuditDomain.choices, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=128, blank=True, default="")

    # [{"id": "...", "name": "...", "type": "compliance|checkbox|notes"}]
    items = models.JSONField(default=list, blank=True)
    frequency = models.CharField(max_length=16, choices=AuditFrequency.choices)

    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_audit_templates",
    )

    class Meta:
        db_table = "audits_template"
        indexes = [
            models.Index(fields=["organization_id", "domain", "is_active"]),
            models.Index(fields=["team_id", "domain"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.domain})"


class AuditCompletion(ScopedModel, PdfArtifactMixin):
    """
    One attempt at an audit template, for the organization or for one resident.

    Lifecycle: draft -> in-progress -> completed. Completed rows are frozen;
    a correction is a new completed row pointing back through `supersedes`.
    """
    domain = models.CharField(max_length=32, choices=AuditDomain.choices, db_index=True)

    # Nullable: deleting a template keeps its completions (template_name snapshot survives).
    template = models.ForeignKey(
        AuditTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="completions",
    )
    template_name = models.CharField(max_length=255)

    resident = models.ForeignKey(
        Resident,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_completions",
    )
    resident_name = models.CharField(max_length=255, blank=True, default="")
    room_number = models.CharField(max_length=32, blank=True, default="")

    # [{"itemId", "itemName", "status"?, "notes"?, "date"?}]
    items = models.JSONField(default=list, blank=True)
    overall_notes = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=CompletionStatus.choices,
        default=CompletionStatus.DRAFT,
        db_index=True,
    )
    audited_by = models.CharField(max_length=255, blank=True, default="")
    audited_at = models.DateTimeField(default=timezone.now)
    frequency = models.CharField(max_length=16, blank=True, default="")

    completed_at = models.DateTimeField(null=True, blank=True, db_index=True)
    next_audit_due = models.DateTimeField(null=True, blank=True, db_index=True)

    version = models.PositiveIntegerField(default=1)
    # At most one successor per row keeps the version chain linear.
    supersedes = models.OneToOneField(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="superseded_by",
    )
    is_archived = models.BooleanField(default=False, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_completions",
    )

    class Meta:
        db_table = "audits_completion"
        constraints = [
            models.UniqueConstraint(
                fields=["template", "organization_id"],
                condition=Q(status__in=OPEN_STATUSES) & Q(resident__isnull=True),
                name="uq_audit_open_draft_org",
            ),
            models.UniqueConstraint(
                fields=["template", "organization_id", "resident"],
                condition=Q(status__in=OPEN_STATUSES) & Q(resident__isnull=False),
                name="uq_audit_open_draft_resident",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_id", "template", "status", "completed_at"]),
            models.Index(fields=["organization_id", "domain", "status"]),
            models.Index(fields=["team_id", "status"]),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def __str__(self) -> str:
        return f"{self.template_name} [{self.status}] v{self.version}"


class ActionPlanPriority(models.TextChoices):
    LOW = "Low", "Low"
    MEDIUM = "Medium", "Medium"
    HIGH = "High", "High"


class ActionPlanStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    OVERDUE = "overdue", "Overdue"


class AuditActionPlan(ScopedModel):
    completion = models.ForeignKey(AuditCompletion, on_delete=models.CASCADE, related_name="action_plans")
    template = models.ForeignKey(
        AuditTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="action_plans",
    )

    description = models.TextField()
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_action_plans",
    )
    assigned_to_name = models.CharField(max_length=255, blank=True, default="")
    priority = models.CharField(max_length=8, choices=ActionPlanPriority.choices, default=ActionPlanPriority.MEDIUM)
    due_date = models.DateField(null=True, blank=True, db_index=True)

    status = models.CharField(
        max_length=16,
        choices=ActionPlanStatus.choices,
        default=ActionPlanStatus.PENDING,
        db_index=True,
    )
    latest_comment = models.TextField(blank=True, default="")
    # [{"status", "comment", "updated_by", "updated_by_name", "updated_at"}]
    status_history = models.JSONField(default=list, blank=True)

    is_new = models.BooleanField(default=True)
    viewed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_action_plans",
    )
    created_by_name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "audits_action_plan"
        indexes = [
            models.Index(fields=["organization_id", "completion"]),
            models.Index(fields=["organization_id", "assigned_to", "status"]),
        ]

    @property
    def is_overdue(self) -> bool:
        if self.status == ActionPlanStatus.COMPLETED or self.due_date is None:
            return False
        return self.due_date < timezone.localdate()

    def __str__(self) -> str:
        return f"{self.description[:40]} [{self.status}]"


class ResidentItemStatus(models.TextChoices):
    NA = "n/a", "N/A"
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in-progress", "In progress"
    COMPLETED = "completed", "Completed"
    OVERDUE = "overdue", "Overdue"
    NOT_APPLICABLE = "not-applicable", "Not applicable"


# Statuses that never count as overdue.
RESIDENT_ITEM_SETTLED = (ResidentItemStatus.COMPLETED, ResidentItemStatus.NA, ResidentItemStatus.NOT_APPLICABLE)


class ResidentAuditItem(ScopedModel):
    """Row of a resident's lightweight audit checklist (one per item name)."""
    resident = models.ForeignKey(Resident, on_delete=models.CASCADE, related_name="audit_items")
    item_name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=16,
        choices=ResidentItemStatus.choices,
        default=ResidentItemStatus.PENDING,
        db_index=True,
    )
    auditor_name = models.CharField(max_length=255, blank=True, default="")
    last_audited_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "audits_resident_item"
        constraints = [
            models.UniqueConstraint(fields=["resident", "item_name"], name="uq_resident_audit_item_name"),
        ]
        indexes = [
            models.Index(fields=["organization_id", "team_id"]),
        ]

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status in RESIDENT_ITEM_SETTLED:
            return False
        return self.due_date < timezone.localdate()

    def __str__(self) -> str:
        return f"{self.item_name} ({self.status})"
