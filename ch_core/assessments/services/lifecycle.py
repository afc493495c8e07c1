# ch_core/assessments/services/lifecycle.py
"""
Assessment lifecycle.

    draft --update--> draft
    draft --submit--> submitted (new row, same version)
    submitted --review--> reviewed (new row, same version)
    submitted | reviewed --amend--> submitted (new row, version + 1)

Only the head of a chain moves forward. A retried call carrying the same
Idempotency-Key returns the row created the first time.
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from ch_core.activity.services import ActivityService
from ch_core.assessments.models import Assessment, AssessmentStatus
from ch_core.assessments.selectors import get_owned_assessment
from ch_core.assessments.services.idempotency import (
    find_draft,
    find_successor,
    is_replay,
    normalize_idempotency_key,
)
from ch_core.common.api.exceptions import ConflictError
from ch_core.common.events import publish
from ch_core.residents.selectors import get_owned_resident

EVENT_SUBMITTED = "assessment.submitted"


def _next_version(*, resident_id: UUID, form_type: str) -> int:
    mx = (
        Assessment.objects.filter(
            resident_id=resident_id,
            form_type=form_type,
        ).aggregate(m=Max("version"))["m"]
        or 0
    )
    return int(mx) + 1


def _publish_submitted(doc: Assessment, actor_user_id: int | None) -> None:
    publish(
        EVENT_SUBMITTED,
        {
            "organization_id": str(doc.organization_id),
            "team_id": str(doc.team_id),
            "assessment_id": str(doc.id),
            "form_type": doc.form_type,
            "actor_user_id": actor_user_id,
        },
    )


def _successor_or_conflict(
    *,
    base: Assessment,
    status: str,
    idempotency_key: Optional[str],
) -> Optional[Assessment]:
    successor = find_successor(base=base)
    if successor is None:
        return None
    if is_replay(successor=successor, status=status, idempotency_key=idempotency_key):
        return successor
    raise ConflictError("This assessment has already been superseded; act on the latest version.")


def _log(doc: Assessment, event_code: str, actor_user_id: int | None, **metadata) -> None:
    ActivityService.log(
        event_code=event_code,
        entity_type="Assessment",
        entity_id=doc.id,
        organization_id=doc.organization_id,
        team_id=doc.team_id,
        actor_user_id=actor_user_id,
        metadata={"form_type": doc.form_type, "version": doc.version, **metadata},
    )


@transaction.atomic
def create_draft(
    *,
    organization_id: UUID,
    team_id: UUID,
    resident_id: UUID,
    form_type: str,
    data: Dict[str, Any],
    actor_user_id: int | None,
    idempotency_key: str | None,
) -> tuple[Assessment, bool]:
    idempotency_key = normalize_idempotency_key(idempotency_key)
    resident = get_owned_resident(organization_id=organization_id, resident_id=resident_id)

    existing = find_draft(
        organization_id=organization_id,
        resident_id=resident.id,
        form_type=form_type,
        idempotency_key=idempotency_key,
    )
    if existing:
        return existing, False

    version = _next_version(resident_id=resident.id, form_type=form_type)

    try:
        with transaction.atomic():
            doc = Assessment.objects.create(
                organization_id=organization_id,
                team_id=team_id,
                resident=resident,
                form_type=form_type,
                version=version,
                status=AssessmentStatus.DRAFT,
                data=data or {},
                idempotency_key=idempotency_key,
                created_by_id=actor_user_id,
            )
    except IntegrityError:
        # Retry storm protection: if another txn won first, fetch and return it.
        existing = find_draft(
            organization_id=organization_id,
            resident_id=resident.id,
            form_type=form_type,
            idempotency_key=idempotency_key,
        )
        if existing:
            return existing, False
        raise

    _log(doc, "assessment.draft_created", actor_user_id)
    return doc, True


@transaction.atomic
def update_draft(
    *,
    organization_id: UUID,
    assessment_id: UUID,
    data: Dict[str, Any],
    actor_user_id: int | None,
    replace: bool = False,
) -> Assessment:
    doc = get_owned_assessment(organization_id=organization_id, assessment_id=assessment_id, for_update=True)
    if doc.status != AssessmentStatus.DRAFT:
        raise ConflictError(f"Only draft assessments can be edited (current={doc.status}).")

    if replace:
        doc.data = data or {}
    else:
        merged = dict(doc.data or {})
        merged.update(data or {})
        doc.data = merged
    doc.save(update_fields=["data", "updated_at"])

    _log(doc, "assessment.draft_updated", actor_user_id, keys=sorted((data or {}).keys()))
    return doc


@transaction.atomic
def submit(
    *,
    organization_id: UUID,
    assessment_id: UUID,
    actor_user_id: int | None,
    idempotency_key: str | None,
) -> tuple[Assessment, bool]:
    idempotency_key = normalize_idempotency_key(idempotency_key)
    base = get_owned_assessment(organization_id=organization_id, assessment_id=assessment_id, for_update=True)
    if base.status != AssessmentStatus.DRAFT:
        raise ConflictError(f"Only draft assessments can be submitted (current={base.status}).")

    existing = _successor_or_conflict(base=base, status=AssessmentStatus.SUBMITTED, idempotency_key=idempotency_key)
    if existing:
        return existing, False

    doc = Assessment.objects.create(
        organization_id=base.organization_id,
        team_id=base.team_id,
        resident_id=base.resident_id,
        form_type=base.form_type,
        version=base.version,
        status=AssessmentStatus.SUBMITTED,
        supersedes=base,
        data=base.data,
        idempotency_key=idempotency_key,
        submitted_at=timezone.now(),
        created_by_id=actor_user_id,
    )
    _log(doc, "assessment.submitted", actor_user_id, supersedes=str(base.id))
    _publish_submitted(doc, actor_user_id)
    return doc, True


@transaction.atomic
def review(
    *,
    organization_id: UUID,
    assessment_id: UUID,
    actor_user_id: int | None,
    idempotency_key: str | None,
) -> tuple[Assessment, bool]:
    idempotency_key = normalize_idempotency_key(idempotency_key)
    base = get_owned_assessment(organization_id=organization_id, assessment_id=assessment_id, for_update=True)
    if base.status != AssessmentStatus.SUBMITTED:
        raise ConflictError(f"Only submitted assessments can be reviewed (current={base.status}).")

    existing = _successor_or_conflict(base=base, status=AssessmentStatus.REVIEWED, idempotency_key=idempotency_key)
    if existing:
        return existing, False

    now = timezone.now()
    # Same content as the submitted row, so its rendered PDF carries over.
    doc = Assessment.objects.create(
        organization_id=base.organization_id,
        team_id=base.team_id,
        resident_id=base.resident_id,
        form_type=base.form_type,
        version=base.version,
        status=AssessmentStatus.REVIEWED,
        supersedes=base,
        data=base.data,
        idempotency_key=idempotency_key,
        submitted_at=base.submitted_at,
        reviewed_at=now,
        reviewed_by_id=actor_user_id,
        created_by_id=actor_user_id,
        pdf_file=base.pdf_file,
        pdf_url=base.pdf_url,
        pdf_generated_at=base.pdf_generated_at,
    )
    _log(doc, "assessment.reviewed", actor_user_id, supersedes=str(base.id))
    return doc, True


@transaction.atomic
def amend(
    *,
    organization_id: UUID,
    assessment_id: UUID,
    data_patch: Dict[str, Any],
    actor_user_id: int | None,
    idempotency_key: str | None,
) -> tuple[Assessment, bool]:
    idempotency_key = normalize_idempotency_key(idempotency_key)
    base = get_owned_assessment(organization_id=organization_id, assessment_id=assessment_id, for_update=True)
    if base.status not in (AssessmentStatus.SUBMITTED, AssessmentStatus.REVIEWED):
        raise ConflictError(f"Only submitted or reviewed assessments can be amended (current={base.status}).")

    existing = _successor_or_conflict(base=base, status=AssessmentStatus.SUBMITTED, idempotency_key=idempotency_key)
    if existing:
        return existing, False

    new_data = dict(base.data or {})
    if isinstance(data_patch, dict):
        new_data.update(data_patch)

    doc = Assessment.objects.create(
        organization_id=base.organization_id,
        team_id=base.team_id,
        resident_id=base.resident_id,
        form_type=base.form_type,
        version=_next_version(resident_id=base.resident_id, form_type=base.form_type),
        status=AssessmentStatus.SUBMITTED,
        supersedes=base,
        data=new_data,
        idempotency_key=idempotency_key,
        submitted_at=timezone.now(),
        created_by_id=actor_user_id,
    )
    _log(doc, "assessment.amended", actor_user_id, supersedes=str(base.id), keys=sorted(new_data.keys()))
    _publish_submitted(doc, actor_user_id)
    return doc, True
