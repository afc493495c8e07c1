# ch_core/pdf/management/commands/run_pdf_jobs.py
from __future__ import annotations

from django.core.management.base import BaseCommand

from ch_core.pdf.models import PdfJob, PdfJobStatus
from ch_core.pdf.services import PdfJobService


class Command(BaseCommand):
    help = "Re-run pending and/or failed PDF jobs synchronously."

    def add_arguments(self, parser):
        parser.add_argument(
            "--status",
            action="append",
            choices=[PdfJobStatus.PENDING, PdfJobStatus.FAILED],
            help="Job status to pick up (repeatable). Default: pending and failed.",
        )
        parser.add_argument("--limit", type=int, default=None, help="Run at most this many jobs.")
        parser.add_argument("--dry-run", action="store_true", help="Print counts only; do not render.")

    def handle(self, *args, **opts):
        statuses = opts["status"] or [PdfJobStatus.PENDING, PdfJobStatus.FAILED]

        if opts["dry_run"]:
            count = PdfJob.objects.filter(status__in=statuses).count()
            self.stdout.write(f"Would run {count} PDF job(s).")
            return

        jobs = PdfJobService.rerun(statuses=statuses, limit=opts["limit"])
        ok = sum(1 for job in jobs if job.status == PdfJobStatus.SUCCEEDED)
        failed = len(jobs) - ok

        self.stdout.write(self.style.SUCCESS(f"Ran {len(jobs)} PDF job(s): {ok} succeeded, {failed} failed."))
        for job in jobs:
            if job.status == PdfJobStatus.FAILED:
                self.stdout.write(self.style.WARNING(f"  {job.id} {job.subject_type}:{job.subject_id} - {job.error_details}"))
