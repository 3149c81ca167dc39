"""
Streak Calculator.

Walks the completion ledger backward from a reference date and counts the
unbroken run of days whose count met the target. The first day without an
entry, or with too small a count, ends the run.

The scan is O(streak length). It is bounded by ledger history; `max_days`
is a safety cap so a pathological history cannot turn one request into a
multi-year walk.

Scheduled habits (specific_days / interval) skip days they are not due on
without breaking the run, and are capped at SCHEDULED_LOOKBACK_DAYS.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

SCHEDULED_LOOKBACK_DAYS = 365

CountOn = Callable[[date], int]
IsDue = Callable[[date], bool]


def compute_streak(
    daily_target: int,
    reference_date: date,
    count_on: CountOn,
    *,
    is_due: Optional[IsDue] = None,
    max_days: Optional[int] = None,
) -> int:
    """
    Return the number of consecutive met days ending at `reference_date`.

    `count_on(day)` returns the ledger count for a day (0 when absent).
    With `is_due` given, non-due days are stepped over and do not count.
    """
    if max_days is None:
        max_days = settings.STREAK_MAX_LOOKBACK_DAYS
    if is_due is not None:
        max_days = min(max_days, SCHEDULED_LOOKBACK_DAYS)

    streak = 0
    day = reference_date
    for _ in range(max_days):
        if is_due is not None and not is_due(day):
            day -= timedelta(days=1)
            continue
        if count_on(day) >= daily_target:
            streak += 1
            day -= timedelta(days=1)
        else:
            return streak

    logger.debug("Streak scan hit the %d-day cap at %s", max_days, day)
    return streak
