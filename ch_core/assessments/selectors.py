# ch_core/assessments/selectors.py
from __future__ import annotations

from typing import List, Optional, Tuple
from uuid import UUID

from django.db.models import QuerySet

from ch_core.assessments.models import Assessment, AssessmentStatus
from ch_core.common.ownership import get_owned
from ch_core.residents.selectors import get_owned_resident

# "Latest" ignores drafts unless asked.
DEFAULT_LATEST_STATUSES: Tuple[str, ...] = (
    AssessmentStatus.SUBMITTED,
    AssessmentStatus.REVIEWED,
)


def get_owned_assessment(*, organization_id: UUID, assessment_id: UUID, for_update: bool = False) -> Assessment:
    return get_owned(
        Assessment,
        organization_id=organization_id,
        pk=assessment_id,
        label="Assessment",
        for_update=for_update,
    )


def assessments_for_resident(
    *,
    organization_id: UUID,
    resident_id: UUID,
    form_type: str | None = None,
    current_only: bool = False,
) -> QuerySet[Assessment]:
    get_owned_resident(organization_id=organization_id, resident_id=resident_id)
    qs = Assessment.objects.filter(organization_id=organization_id, resident_id=resident_id)
    if form_type:
        qs = qs.filter(form_type=form_type)
    if current_only:
        qs = qs.filter(superseded_by__isnull=True)
    return qs.order_by("-created_at")


def latest_assessment(
    *,
    organization_id: UUID,
    resident_id: UUID,
    form_type: str,
    statuses: Tuple[str, ...] = DEFAULT_LATEST_STATUSES,
) -> Optional[Assessment]:
    """Head of the version chain for (resident, form_type): highest version, newest row."""
    return (
        assessments_for_resident(organization_id=organization_id, resident_id=resident_id, form_type=form_type)
        .filter(status__in=statuses, superseded_by__isnull=True)
        .order_by("-version", "-created_at")
        .first()
    )


def version_chain(assessment: Assessment) -> List[Assessment]:
    """Rows this one supersedes, nearest first."""
    out: List[Assessment] = []
    current = assessment.supersedes
    while current is not None:
        out.append(current)
        current = current.supersedes
    return out


def list_assessments(
    *,
    organization_id: UUID,
    team_id: UUID | None = None,
    resident_id: UUID | None = None,
    form_type: str | None = None,
    status: str | None = None,
    current_only: bool = False,
) -> QuerySet[Assessment]:
    if resident_id:
        qs = assessments_for_resident(
            organization_id=organization_id,
            resident_id=resident_id,
            current_only=current_only,
        )
    else:
        qs = Assessment.objects.filter(organization_id=organization_id)
        if current_only:
            qs = qs.filter(superseded_by__isnull=True)
    if team_id:
        qs = qs.filter(team_id=team_id)
    if form_type:
        qs = qs.filter(form_type=form_type)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")
