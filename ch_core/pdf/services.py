# ch_core/pdf/services.py
"""
PDF job outbox.

A job row is written in the same transaction as the change that needs a
document; rendering starts after commit (in a thread when PDF_JOBS_ASYNC).
A failed render is recorded on the job and logged. The subject's own write
is never rolled back and nothing retries automatically; `run_pdf_jobs`
re-runs jobs on demand.
"""
from __future__ import annotations

import threading
from typing import Iterable, List, Optional
from uuid import UUID

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import close_old_connections, transaction
from django.utils import timezone

from ch_core.activity.services import ActivityService
from ch_core.common.logging import get_logger
from ch_core.pdf.models import PdfJob, PdfJobStatus
from ch_core.pdf.payloads import SUBJECT_MODELS, document_for, load_subject
from ch_core.pdf.rendering import render_with_timeout

log = get_logger(__name__)

STORAGE_PREFIX = "pdfs"


def _storage_name(job: PdfJob, filename: str) -> str:
    return f"{STORAGE_PREFIX}/{job.subject_type}/{job.subject_id}/{filename}"


def _run_in_thread(job_id: UUID) -> None:
    try:
        PdfJobService.run_job(job_id=job_id)
    finally:
        close_old_connections()


class PdfJobService:
    @staticmethod
    @transaction.atomic
    def enqueue(
        *,
        organization_id: UUID,
        team_id: UUID,
        subject_type: str,
        subject_id: UUID,
    ) -> Optional[PdfJob]:
        if not settings.PDF_JOBS_ENABLED:
            log.debug("PDF jobs disabled; skipping {} {}", subject_type, subject_id)
            return None

        job = PdfJob.objects.create(
            organization_id=organization_id,
            team_id=team_id,
            subject_type=str(subject_type),
            subject_id=subject_id,
            status=PdfJobStatus.PENDING,
        )
        log.info("PDF job {} queued for {} {}", job.id, subject_type, subject_id)

        job_id = job.id
        transaction.on_commit(lambda: PdfJobService.dispatch(job_id=job_id))
        return job

    @staticmethod
    def dispatch(*, job_id: UUID) -> None:
        if settings.PDF_JOBS_ASYNC:
            threading.Thread(target=_run_in_thread, args=(job_id,), daemon=True, name=f"pdf-job-{job_id}").start()
        else:
            PdfJobService.run_job(job_id=job_id)

    @staticmethod
    def run_job(*, job_id: UUID) -> Optional[PdfJob]:
        """
        Render, store and attach the document. Never raises: the outcome is
        on the returned job.
        """
        job = PdfJob.objects.filter(pk=job_id).first()
        if job is None:
            log.warning("PDF job {} vanished before it ran", job_id)
            return None

        job.status = PdfJobStatus.PENDING
        job.attempts += 1
        job.started_at = timezone.now()
        job.finished_at = None
        job.error_details = ""
        job.save(update_fields=["status", "attempts", "started_at", "finished_at", "error_details", "updated_at"])

        try:
            subject = load_subject(job.subject_type, job.subject_id)
            if subject is None:
                raise LookupError(f"{job.subject_type} {job.subject_id} no longer exists")

            document, filename = document_for(job.subject_type, subject)
            content = render_with_timeout(document)

            name = default_storage.save(_storage_name(job, filename), ContentFile(content))
            url = default_storage.url(name)
            now = timezone.now()

            # Targeted update: the subject may have moved on since the job was queued.
            SUBJECT_MODELS[job.subject_type].objects.filter(pk=job.subject_id).update(
                pdf_file=name,
                pdf_url=url,
                pdf_generated_at=now,
            )
        except Exception as exc:
            log.exception("PDF job {} for {} {} failed", job.id, job.subject_type, job.subject_id)
            job.status = PdfJobStatus.FAILED
            job.error_details = str(exc) or exc.__class__.__name__
            job.finished_at = timezone.now()
            job.save(update_fields=["status", "error_details", "finished_at", "updated_at"])
            _log_outcome(job, "pdf.job.failed", error=job.error_details)
            return job

        job.status = PdfJobStatus.SUCCEEDED
        job.file = name
        job.finished_at = now
        job.save(update_fields=["status", "file", "finished_at", "updated_at"])
        log.info("PDF job {} stored {} ({} bytes)", job.id, name, len(content))
        _log_outcome(job, "pdf.job.succeeded", file=name)
        return job

    @staticmethod
    def rerun(
        *,
        statuses: Iterable[str] = (PdfJobStatus.PENDING, PdfJobStatus.FAILED),
        limit: int | None = None,
    ) -> List[PdfJob]:
        """Synchronously re-run queued or failed jobs, oldest first."""
        ids = list(
            PdfJob.objects.filter(status__in=list(statuses)).order_by("created_at").values_list("id", flat=True)
        )
        if limit:
            ids = ids[:limit]
        results = []
        for job_id in ids:
            job = PdfJobService.run_job(job_id=job_id)
            if job is not None:
                results.append(job)
        return results

    @staticmethod
    def delete_jobs_for(*, subject_type: str, subject_id: UUID) -> int:
        """Drop a deleted subject's jobs and stored files."""
        jobs = list(PdfJob.objects.filter(subject_type=str(subject_type), subject_id=subject_id))
        for job in jobs:
            if job.file and default_storage.exists(job.file):
                default_storage.delete(job.file)
        count = PdfJob.objects.filter(pk__in=[j.pk for j in jobs]).delete()[0]
        if count:
            log.info("Deleted {} PDF job(s) for {} {}", count, subject_type, subject_id)
        return count


def _log_outcome(job: PdfJob, event_code: str, **metadata) -> None:
    ActivityService.log(
        event_code=event_code,
        entity_type="PdfJob",
        entity_id=job.id,
        organization_id=job.organization_id,
        team_id=job.team_id,
        actor_user_id=None,
        metadata={
            "subject_type": job.subject_type,
            "subject_id": str(job.subject_id),
            "attempts": job.attempts,
            **metadata,
        },
    )
