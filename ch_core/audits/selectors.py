# ch_core/audits/selectors.py
"""
Read paths over audit completions.

"Current" rows are completed, not archived and not superseded by a
correction. Latest/history/overdue views are computed over that set; older
versions are only reachable through previous_versions() and
archived_completions().
"""
from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from ch_core.audits.models import (
    OPEN_STATUSES,
    RESIDENT_ITEM_SETTLED,
    AuditActionPlan,
    AuditCompletion,
    AuditTemplate,
    CompletionStatus,
    ResidentAuditItem,
)
from ch_core.common.ownership import get_owned
from ch_core.residents.selectors import get_owned_resident


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
def get_owned_template(*, organization_id: UUID, template_id: UUID, for_update: bool = False) -> AuditTemplate:
    return get_owned(
        AuditTemplate,
        organization_id=organization_id,
        pk=template_id,
        label="Audit template",
        for_update=for_update,
    )


def templates_by_organization(
    *,
    organization_id: UUID,
    domain: str | None = None,
    include_inactive: bool = False,
) -> QuerySet[AuditTemplate]:
    qs = AuditTemplate.objects.filter(organization_id=organization_id)
    if domain:
        qs = qs.filter(domain=domain)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.order_by("name", "created_at")


def templates_by_team(*, organization_id: UUID, team_id: UUID, domain: str | None = None) -> QuerySet[AuditTemplate]:
    return templates_by_organization(organization_id=organization_id, domain=domain).filter(team_id=team_id)


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------
def get_owned_completion(*, organization_id: UUID, completion_id: UUID, for_update: bool = False) -> AuditCompletion:
    return get_owned(
        AuditCompletion,
        organization_id=organization_id,
        pk=completion_id,
        label="Audit completion",
        for_update=for_update,
    )


def current_completed(qs: QuerySet[AuditCompletion]) -> QuerySet[AuditCompletion]:
    return qs.filter(
        status=CompletionStatus.COMPLETED,
        is_archived=False,
        superseded_by__isnull=True,
    )


def _for_pair(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None,
) -> QuerySet[AuditCompletion]:
    """Rows for one (template, resident) pair; resident None means the organization-level audit."""
    get_owned_template(organization_id=organization_id, template_id=template_id)
    qs = AuditCompletion.objects.filter(organization_id=organization_id, template_id=template_id)
    if resident_id is None:
        return qs.filter(resident__isnull=True)
    get_owned_resident(organization_id=organization_id, resident_id=resident_id)
    return qs.filter(resident_id=resident_id)


def latest_completion(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None = None,
) -> Optional[AuditCompletion]:
    qs = _for_pair(organization_id=organization_id, template_id=template_id, resident_id=resident_id)
    return current_completed(qs).order_by("-completed_at", "-created_at").first()


def completion_history(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None = None,
    limit: int | None = None,
) -> List[AuditCompletion]:
    """Completed current rows other than the latest, newest first, capped at `limit`."""
    limit = settings.AUDIT_HISTORY_LIMIT if limit is None else limit
    qs = _for_pair(organization_id=organization_id, template_id=template_id, resident_id=resident_id)
    ordered = current_completed(qs).order_by("-completed_at", "-created_at")
    return list(ordered[1 : limit + 1])


def _pair_key(c: AuditCompletion):
    # Completions of a deleted template still group by their name snapshot.
    template_key = c.template_id or f"name:{c.template_name}"
    return template_key, c.resident_id


def latest_per_pair(rows: Iterable[AuditCompletion]) -> List[AuditCompletion]:
    """First-seen-wins per (template, resident); rows must already be sorted newest first."""
    seen = set()
    out: List[AuditCompletion] = []
    for c in rows:
        key = _pair_key(c)
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out


def all_latest_completions(
    *,
    organization_id: UUID,
    domain: str | None = None,
    team_id: UUID | None = None,
) -> List[AuditCompletion]:
    qs = current_completed(AuditCompletion.objects.filter(organization_id=organization_id))
    if domain:
        qs = qs.filter(domain=domain)
    if team_id:
        qs = qs.filter(team_id=team_id)
    return latest_per_pair(qs.select_related("template", "resident").order_by("-completed_at", "-created_at"))


def overdue_completions(
    *,
    organization_id: UUID,
    team_id: UUID | None = None,
    domain: str | None = None,
    now=None,
) -> List[AuditCompletion]:
    now = now or timezone.now()
    latest = all_latest_completions(organization_id=organization_id, domain=domain, team_id=team_id)
    rows = [c for c in latest if c.next_audit_due is not None and c.next_audit_due < now]
    return sorted(rows, key=lambda c: c.next_audit_due)


def upcoming_completions(
    *,
    organization_id: UUID,
    team_id: UUID | None = None,
    domain: str | None = None,
    window_days: int | None = None,
    now=None,
) -> List[AuditCompletion]:
    now = now or timezone.now()
    window_days = settings.AUDIT_UPCOMING_WINDOW_DAYS if window_days is None else window_days
    horizon = now + timedelta(days=window_days)
    latest = all_latest_completions(organization_id=organization_id, domain=domain, team_id=team_id)
    rows = [c for c in latest if c.next_audit_due is not None and now <= c.next_audit_due <= horizon]
    return sorted(rows, key=lambda c: c.next_audit_due)


def open_drafts(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None = None,
) -> QuerySet[AuditCompletion]:
    qs = _for_pair(organization_id=organization_id, template_id=template_id, resident_id=resident_id)
    return qs.filter(status__in=OPEN_STATUSES).order_by("-updated_at")


def find_open_draft(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None,
) -> Optional[AuditCompletion]:
    qs = AuditCompletion.objects.filter(
        organization_id=organization_id,
        template_id=template_id,
        status__in=OPEN_STATUSES,
    )
    if resident_id is None:
        qs = qs.filter(resident__isnull=True)
    else:
        qs = qs.filter(resident_id=resident_id)
    return qs.order_by("created_at").first()


def drafts_by_team(*, organization_id: UUID, team_id: UUID) -> QuerySet[AuditCompletion]:
    return AuditCompletion.objects.filter(
        organization_id=organization_id,
        team_id=team_id,
        status__in=OPEN_STATUSES,
    ).order_by("-updated_at")


def previous_versions(completion: AuditCompletion) -> List[AuditCompletion]:
    """Rows this one supersedes, nearest first."""
    out: List[AuditCompletion] = []
    current = completion.supersedes
    while current is not None:
        out.append(current)
        current = current.supersedes
    return out


def archived_completions(
    *,
    organization_id: UUID,
    template_id: UUID,
    resident_id: UUID | None = None,
) -> QuerySet[AuditCompletion]:
    qs = _for_pair(organization_id=organization_id, template_id=template_id, resident_id=resident_id)
    return qs.filter(status=CompletionStatus.COMPLETED, is_archived=True).order_by("-completed_at")


def completions_by_resident(*, organization_id: UUID, resident_id: UUID) -> QuerySet[AuditCompletion]:
    get_owned_resident(organization_id=organization_id, resident_id=resident_id)
    return AuditCompletion.objects.filter(organization_id=organization_id, resident_id=resident_id).order_by(
        "-completed_at", "-created_at"
    )


def list_completions(
    *,
    organization_id: UUID,
    team_id: UUID | None = None,
    domain: str | None = None,
    template_id: UUID | None = None,
    resident_id: UUID | None = None,
    status: str | None = None,
) -> QuerySet[AuditCompletion]:
    if resident_id:
        qs = completions_by_resident(organization_id=organization_id, resident_id=resident_id)
    else:
        qs = AuditCompletion.objects.filter(organization_id=organization_id)
    if team_id:
        qs = qs.filter(team_id=team_id)
    if domain:
        qs = qs.filter(domain=domain)
    if template_id:
        qs = qs.filter(template_id=template_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


# ---------------------------------------------------------------------------
# Action plans
# ---------------------------------------------------------------------------
def get_owned_action_plan(*, organization_id: UUID, plan_id: UUID, for_update: bool = False) -> AuditActionPlan:
    return get_owned(
        AuditActionPlan,
        organization_id=organization_id,
        pk=plan_id,
        label="Action plan",
        for_update=for_update,
    )


def list_action_plans(
    *,
    organization_id: UUID,
    completion_id: UUID | None = None,
    template_id: UUID | None = None,
    assignee_id: int | None = None,
    status: str | None = None,
) -> QuerySet[AuditActionPlan]:
    if completion_id:
        get_owned_completion(organization_id=organization_id, completion_id=completion_id)
    qs = AuditActionPlan.objects.filter(organization_id=organization_id)
    if completion_id:
        qs = qs.filter(completion_id=completion_id)
    if template_id:
        qs = qs.filter(template_id=template_id)
    if assignee_id:
        qs = qs.filter(assigned_to_id=assignee_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("due_date", "-created_at")


def action_plan_counts(*, organization_id: UUID, completion_id: UUID) -> dict:
    qs = list_action_plans(organization_id=organization_id, completion_id=completion_id)
    plans = list(qs)
    return {
        "completion_id": str(completion_id),
        "count": len(plans),
        "open": sum(1 for p in plans if p.status != "completed"),
        "overdue": sum(1 for p in plans if p.is_overdue),
    }


# ---------------------------------------------------------------------------
# Resident audit items
# ---------------------------------------------------------------------------
def resident_items_for_resident(*, organization_id: UUID, resident_id: UUID) -> QuerySet[ResidentAuditItem]:
    get_owned_resident(organization_id=organization_id, resident_id=resident_id)
    return ResidentAuditItem.objects.filter(organization_id=organization_id, resident_id=resident_id).order_by(
        "item_name"
    )


def resident_items_for_team(*, organization_id: UUID, team_id: UUID) -> QuerySet[ResidentAuditItem]:
    return ResidentAuditItem.objects.filter(organization_id=organization_id, team_id=team_id).order_by(
        "resident_id", "item_name"
    )


def overdue_item_count(*, organization_id: UUID, resident_id: UUID, today=None) -> int:
    today = today or timezone.localdate()
    return (
        resident_items_for_resident(organization_id=organization_id, resident_id=resident_id)
        .filter(due_date__lt=today)
        .exclude(status__in=RESIDENT_ITEM_SETTLED)
        .count()
    )


def _has_answers(items) -> bool:
    """Seeded rows only carry itemId/itemName; anything else means someone answered."""
    return any(it.get("status") or it.get("notes") or it.get("date") for it in items or [] if isinstance(it, dict))


def stale_empty_draft_ids(*, max_age_days: int | None = None, now=None) -> List[UUID]:
    """Open rows older than the cutoff with no answered item and no overall notes."""
    max_age_days = settings.AUDIT_DRAFT_MAX_AGE_DAYS if max_age_days is None else max_age_days
    cutoff = (now or timezone.now()) - timedelta(days=max_age_days)
    stale = AuditCompletion.objects.filter(status__in=OPEN_STATUSES, created_at__lt=cutoff).only("id", "items", "overall_notes")
    return [c.id for c in stale if not _has_answers(c.items) and not c.overall_notes]
