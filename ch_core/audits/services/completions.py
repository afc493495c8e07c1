# ch_core/audits/services/completions.py
"""
Completion lifecycle.

    draft --autosave--> draft | in-progress
    in-progress --autosave--> in-progress
    draft | in-progress --complete--> completed
    completed --correct--> (new completed row, supersedes=<original>)

Completed rows are never edited. At most one open (draft/in-progress) row
exists per (template, organization[, resident]); the partial unique
constraints on AuditCompletion enforce it and racing inserts re-read the winner.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from ch_core.activity.services import ActivityService
from ch_core.audits.models import (
    OPEN_STATUSES,
    AuditCompletion,
    CompletionStatus,
    ItemStatus,
)
from ch_core.audits.selectors import (
    current_completed,
    find_open_draft,
    get_owned_completion,
    get_owned_template,
    stale_empty_draft_ids,
)
from ch_core.audits.services.frequency import next_due
from ch_core.common.api.exceptions import ConflictError
from ch_core.common.events import publish
from ch_core.common.logging import get_logger
from ch_core.residents.selectors import get_owned_resident

log = get_logger(__name__)

EVENT_COMPLETED = "audit.completion.completed"
EVENT_DELETED = "audit.completion.deleted"

RESPONSE_KEYS = ("itemId", "itemName", "status", "notes", "date")


def normalize_response_items(items: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Shallow check of an answer snapshot: every entry names its item and any
    status is one of the known values. Unknown keys are dropped.
    """
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError({"items": "Items must be a list."})

    out: List[Dict[str, Any]] = []
    for idx, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError({"items": f"Item {idx} must be an object."})
        if not raw.get("itemId") or not raw.get("itemName"):
            raise ValidationError({"items": f"Item {idx} needs itemId and itemName."})
        status = raw.get("status")
        if status not in (None, "") and status not in ItemStatus.values:
            raise ValidationError({"items": f"Item {idx} has unknown status '{status}'."})
        out.append({k: raw[k] for k in RESPONSE_KEYS if raw.get(k) not in (None, "")})
    return out


def _seed_items(template_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{"itemId": it["id"], "itemName": it["name"]} for it in template_items or []]


def _event_payload(completion: AuditCompletion, actor_user_id: int | None) -> Dict[str, Any]:
    return {
        "organization_id": str(completion.organization_id),
        "team_id": str(completion.team_id),
        "completion_id": str(completion.id),
        "actor_user_id": actor_user_id,
    }


def _archive_beyond_cap(completion: AuditCompletion) -> int:
    """Flag completed rows past the history cap for this (template, resident) as archived. Nothing is deleted."""
    if completion.template_id is None:
        return 0

    qs = AuditCompletion.objects.filter(
        organization_id=completion.organization_id,
        template_id=completion.template_id,
    )
    if completion.resident_id is None:
        qs = qs.filter(resident__isnull=True)
    else:
        qs = qs.filter(resident_id=completion.resident_id)

    limit = settings.AUDIT_HISTORY_LIMIT
    stale_ids = list(
        current_completed(qs).order_by("-completed_at", "-created_at").values_list("id", flat=True)[limit:]
    )
    if not stale_ids:
        return 0
    return AuditCompletion.objects.filter(id__in=stale_ids).update(is_archived=True, updated_at=timezone.now())


class AuditCompletionService:
    @staticmethod
    @transaction.atomic
    def get_or_create_draft(
        *,
        organization_id: UUID,
        team_id: UUID,
        actor_user_id: int | None,
        template_id: UUID,
        audited_by: str = "",
        resident_id: UUID | None = None,
    ) -> tuple[AuditCompletion, bool]:
        """
        The open row for (template, organization[, resident]) or a new draft
        seeded from the template's current items and frequency.
        """
        template = get_owned_template(organization_id=organization_id, template_id=template_id)
        resident = None
        if resident_id is not None:
            resident = get_owned_resident(organization_id=organization_id, resident_id=resident_id)

        existing = find_open_draft(organization_id=organization_id, template_id=template.id, resident_id=resident_id)
        if existing:
            return existing, False

        if not template.is_active:
            raise ValidationError({"template_id": "Archived templates cannot start new audits."})

        try:
            with transaction.atomic():
                completion = AuditCompletion.objects.create(
                    organization_id=organization_id,
                    team_id=team_id,
                    domain=template.domain,
                    template=template,
                    template_name=template.name,
                    resident=resident,
                    resident_name=resident.full_name if resident else "",
                    room_number=resident.room_number if resident else "",
                    items=_seed_items(template.items),
                    status=CompletionStatus.DRAFT,
                    audited_by=audited_by or "",
                    audited_at=timezone.now(),
                    frequency=template.frequency,
                    created_by_id=actor_user_id,
                )
        except IntegrityError:
            # Another request opened the draft first.
            existing = find_open_draft(
                organization_id=organization_id,
                template_id=template.id,
                resident_id=resident_id,
            )
            if existing:
                return existing, False
            raise

        ActivityService.log(
            event_code="audit.completion.created",
            entity_type="AuditCompletion",
            entity_id=completion.id,
            organization_id=organization_id,
            team_id=team_id,
            actor_user_id=actor_user_id,
            metadata={"template_id": template.id, "resident_id": resident_id},
        )
        return completion, True

    @staticmethod
    @transaction.atomic
    def update_response(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        completion_id: UUID,
        items: Optional[List[Dict[str, Any]]] = None,
        overall_notes: Optional[str] = None,
        status: Optional[str] = None,
        audited_by: Optional[str] = None,
    ) -> AuditCompletion:
        """
        Autosave. Last write wins on open rows; status only moves forward.
        On a completed row this produces a correction instead of an edit.
        """
        completion = get_owned_completion(organization_id=organization_id, completion_id=completion_id, for_update=True)

        if not completion.is_open:
            return AuditCompletionService.correct_completion(
                organization_id=organization_id,
                actor_user_id=actor_user_id,
                completion_id=completion.id,
                items=items,
                overall_notes=overall_notes,
                audited_by=audited_by,
            )

        target = status or completion.status
        if target == CompletionStatus.COMPLETED:
            return AuditCompletionService.complete_audit(
                organization_id=organization_id,
                actor_user_id=actor_user_id,
                completion_id=completion.id,
                items=items,
                overall_notes=overall_notes,
                audited_by=audited_by,
            )
        if target not in OPEN_STATUSES:
            raise ValidationError({"status": f"Unknown status '{target}'."})
        if completion.status == CompletionStatus.IN_PROGRESS and target == CompletionStatus.DRAFT:
            raise ConflictError("An in-progress audit cannot move back to draft.")

        if items is not None:
            completion.items = normalize_response_items(items)
        if overall_notes is not None:
            completion.overall_notes = overall_notes
        if audited_by:
            completion.audited_by = audited_by
        completion.status = target
        completion.save()
        return completion

    @staticmethod
    @transaction.atomic
    def complete_audit(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        completion_id: UUID,
        items: Optional[List[Dict[str, Any]]] = None,
        overall_notes: Optional[str] = None,
        audited_by: Optional[str] = None,
    ) -> AuditCompletion:
        completion = get_owned_completion(organization_id=organization_id, completion_id=completion_id, for_update=True)
        if completion.status == CompletionStatus.COMPLETED:
            raise ConflictError("Audit is already completed. Submit a correction instead.")

        now = timezone.now()
        if items is not None:
            completion.items = normalize_response_items(items)
        if overall_notes is not None:
            completion.overall_notes = overall_notes
        if audited_by:
            completion.audited_by = audited_by

        completion.status = CompletionStatus.COMPLETED
        completion.audited_at = now
        completion.completed_at = now
        completion.next_audit_due = next_due(now, completion.frequency)
        completion.save()

        archived = _archive_beyond_cap(completion)

        ActivityService.log(
            event_code="audit.completion.completed",
            entity_type="AuditCompletion",
            entity_id=completion.id,
            organization_id=completion.organization_id,
            team_id=completion.team_id,
            actor_user_id=actor_user_id,
            metadata={"next_audit_due": completion.next_audit_due, "archived": archived},
        )
        publish(EVENT_COMPLETED, _event_payload(completion, actor_user_id))
        return completion

    @staticmethod
    @transaction.atomic
    def correct_completion(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        completion_id: UUID,
        items: Optional[List[Dict[str, Any]]] = None,
        overall_notes: Optional[str] = None,
        audited_by: Optional[str] = None,
    ) -> AuditCompletion:
        """
        New completed row superseding a completed one. The original is left
        untouched and stays reachable through previous versions.
        """
        original = get_owned_completion(organization_id=organization_id, completion_id=completion_id, for_update=True)
        if original.status != CompletionStatus.COMPLETED:
            raise ConflictError("Only completed audits can be corrected.")
        if AuditCompletion.objects.filter(supersedes=original).exists():
            raise ConflictError("This audit has already been corrected. Correct the latest version.")

        now = timezone.now()
        try:
            with transaction.atomic():
                correction = AuditCompletion.objects.create(
                    organization_id=original.organization_id,
                    team_id=original.team_id,
                    domain=original.domain,
                    template_id=original.template_id,
                    template_name=original.template_name,
                    resident_id=original.resident_id,
                    resident_name=original.resident_name,
                    room_number=original.room_number,
                    items=normalize_response_items(items) if items is not None else list(original.items or []),
                    overall_notes=overall_notes if overall_notes is not None else original.overall_notes,
                    status=CompletionStatus.COMPLETED,
                    audited_by=audited_by or original.audited_by,
                    audited_at=now,
                    frequency=original.frequency,
                    completed_at=now,
                    next_audit_due=next_due(now, original.frequency),
                    version=original.version + 1,
                    supersedes=original,
                    created_by_id=actor_user_id,
                )
        except IntegrityError:
            raise ConflictError("This audit has already been corrected. Correct the latest version.") from None

        _archive_beyond_cap(correction)

        ActivityService.log(
            event_code="audit.completion.corrected",
            entity_type="AuditCompletion",
            entity_id=correction.id,
            organization_id=correction.organization_id,
            team_id=correction.team_id,
            actor_user_id=actor_user_id,
            metadata={"supersedes": original.id, "version": correction.version},
        )
        publish(EVENT_COMPLETED, _event_payload(correction, actor_user_id))
        return correction

    @staticmethod
    @transaction.atomic
    def delete_response(*, organization_id: UUID, actor_user_id: int | None, completion_id: UUID) -> None:
        """Hard delete. Action plans cascade; PDF jobs are removed by their subscriber in this transaction."""
        completion = get_owned_completion(organization_id=organization_id, completion_id=completion_id, for_update=True)
        plan_count = completion.action_plans.count()

        publish(EVENT_DELETED, _event_payload(completion, actor_user_id))

        ActivityService.log(
            event_code="audit.completion.deleted",
            entity_type="AuditCompletion",
            entity_id=completion.id,
            organization_id=completion.organization_id,
            team_id=completion.team_id,
            actor_user_id=actor_user_id,
            metadata={"template_name": completion.template_name, "action_plans": plan_count},
        )
        completion.delete()

    @staticmethod
    @transaction.atomic
    def cleanup_old_drafts(*, max_age_days: int | None = None, now=None) -> int:
        """Delete unanswered open rows older than the cutoff, with their action plans."""
        ids = stale_empty_draft_ids(max_age_days=max_age_days, now=now)
        if not ids:
            return 0

        for completion_id in ids:
            publish(EVENT_DELETED, {"completion_id": str(completion_id)})
        AuditCompletion.objects.filter(id__in=ids).delete()

        log.info("Removed {} stale audit draft(s)", len(ids))
        return len(ids)
