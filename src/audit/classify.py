"""Age helpers used for stale highlighting and month-based reporting.

`is_older_than` uses a fixed 30-day month while `months_between` is calendar
aware, so the two can disagree around month boundaries.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

REPO_STALE_MONTHS = 12
BRANCH_STALE_MONTHS = 6
DAYS_PER_MONTH = 30


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def is_older_than(timestamp: dt.datetime, months: int, now: Optional[dt.datetime] = None) -> bool:
    """Return True when more than `months` x 30 days have elapsed since `timestamp`."""
    now = now or utc_now()
    return now - timestamp > dt.timedelta(days=months * DAYS_PER_MONTH)


def months_between(start: dt.datetime, end: dt.datetime) -> int:
    """Whole calendar months from `start` to `end`."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def is_stale_repository(updated_at: dt.datetime, now: Optional[dt.datetime] = None) -> bool:
    return is_older_than(updated_at, REPO_STALE_MONTHS, now)


def is_stale_branch(target_date: dt.datetime, now: Optional[dt.datetime] = None) -> bool:
    return is_older_than(target_date, BRANCH_STALE_MONTHS, now)


__all__ = [
    "REPO_STALE_MONTHS",
    "BRANCH_STALE_MONTHS",
    "utc_now",
    "is_older_than",
    "months_between",
    "is_stale_repository",
    "is_stale_branch",
]
