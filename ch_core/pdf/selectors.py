# ch_core/pdf/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from ch_core.common.ownership import get_owned
from ch_core.pdf.models import PdfJob

PDF_STATUS_NONE = "none"


def get_owned_job(*, organization_id: UUID, job_id: UUID) -> PdfJob:
    return get_owned(PdfJob, organization_id=organization_id, pk=job_id, label="PDF job")


def latest_job_for(*, subject_type: str, subject_id: UUID) -> Optional[PdfJob]:
    return PdfJob.objects.filter(subject_type=subject_type, subject_id=subject_id).order_by("-created_at").first()


def pdf_status_for(*, subject_type: str, subject_id: UUID) -> str:
    """none | pending | succeeded | failed, from the most recent job."""
    job = latest_job_for(subject_type=subject_type, subject_id=subject_id)
    return job.status if job else PDF_STATUS_NONE


def download_url_for(subject) -> Optional[str]:
    """Rendered file URL, or None when the subject has none (or no longer exists)."""
    if subject is None:
        return None
    return getattr(subject, "pdf_url", "") or None


def list_jobs(
    *,
    organization_id: UUID,
    subject_id: UUID | None = None,
    subject_type: str | None = None,
    status: str | None = None,
) -> QuerySet[PdfJob]:
    qs = PdfJob.objects.filter(organization_id=organization_id)
    if subject_id:
        qs = qs.filter(subject_id=subject_id)
    if subject_type:
        qs = qs.filter(subject_type=subject_type)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")
