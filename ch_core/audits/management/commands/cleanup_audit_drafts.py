# ch_core/audits/management/commands/cleanup_audit_drafts.py
from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand

from ch_core.audits.selectors import stale_empty_draft_ids
from ch_core.audits.services import AuditCompletionService


class Command(BaseCommand):
    help = "Delete draft/in-progress audits that were never answered and are older than the cutoff."

    def add_arguments(self, parser):
        parser.add_argument(
            "--max-age-days",
            type=int,
            default=None,
            help=f"Age cutoff in days (default AUDIT_DRAFT_MAX_AGE_DAYS={settings.AUDIT_DRAFT_MAX_AGE_DAYS}).",
        )
        parser.add_argument("--dry-run", action="store_true", help="Print counts only; do not delete.")

    def handle(self, *args, **opts):
        max_age_days = opts["max_age_days"]

        if opts["dry_run"]:
            count = len(stale_empty_draft_ids(max_age_days=max_age_days))
            self.stdout.write(f"Would delete {count} stale draft(s).")
            return

        count = AuditCompletionService.cleanup_old_drafts(max_age_days=max_age_days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} stale draft(s)."))
