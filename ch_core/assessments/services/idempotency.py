# ch_core/assessments/services/idempotency.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from ch_core.assessments.models import Assessment, AssessmentStatus


def normalize_idempotency_key(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v if v else None


def get_key_from_request(request) -> Optional[str]:
    """
    Prefer header "Idempotency-Key". In Django META it's HTTP_IDEMPOTENCY_KEY.
    Fallback to request body field if present.
    """
    raw = request.META.get("HTTP_IDEMPOTENCY_KEY") or request.data.get("idempotency_key")
    return normalize_idempotency_key(raw)


def find_draft(
    *,
    organization_id: UUID,
    resident_id: UUID,
    form_type: str,
    idempotency_key: Optional[str],
) -> Optional[Assessment]:
    idempotency_key = normalize_idempotency_key(idempotency_key)
    if not idempotency_key:
        return None
    return (
        Assessment.objects.filter(
            organization_id=organization_id,
            resident_id=resident_id,
            form_type=form_type,
            status=AssessmentStatus.DRAFT,
            idempotency_key=idempotency_key,
        )
        .order_by("created_at")
        .first()
    )


def find_successor(*, base: Assessment) -> Optional[Assessment]:
    """The row that already supersedes `base`, if any (at most one exists)."""
    return Assessment.objects.filter(supersedes=base).first()


def is_replay(*, successor: Assessment, status: str, idempotency_key: Optional[str]) -> bool:
    """A retried submit/review/amend: same target status and same non-empty key."""
    idempotency_key = normalize_idempotency_key(idempotency_key)
    return bool(idempotency_key) and successor.status == status and successor.idempotency_key == idempotency_key
