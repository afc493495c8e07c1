# ch_core/audits/services/frequency.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from django.core.exceptions import ValidationError

from ch_core.audits.models import DOMAIN_FREQUENCIES

FREQUENCY_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
    "3months": 90,
    "6months": 180,
    "yearly": 365,
}

# Unknown or missing frequency.
DEFAULT_INTERVAL_DAYS = 180

# Run on demand; never scheduled, so never overdue or upcoming.
UNSCHEDULED_FREQUENCIES = {"adhoc"}


def interval_for(frequency: str | None) -> timedelta:
    return timedelta(days=FREQUENCY_DAYS.get(str(frequency or ""), DEFAULT_INTERVAL_DAYS))


def next_due(completed_at: datetime, frequency: str | None) -> Optional[datetime]:
    """completed_at + fixed interval for the frequency. Computed once, never refreshed."""
    if str(frequency or "") in UNSCHEDULED_FREQUENCIES:
        return None
    return completed_at + interval_for(frequency)


def validate_frequency(domain: str, frequency: str) -> None:
    allowed = DOMAIN_FREQUENCIES.get(str(domain))
    if allowed is None:
        raise ValidationError({"domain": f"Unknown audit domain '{domain}'."})
    if str(frequency) not in allowed:
        raise ValidationError(
            {"frequency": f"'{frequency}' is not valid for {domain} audits. Use one of: {', '.join(sorted(allowed))}."}
        )
