"""
Clock — the only place "today" and "now" are resolved.

Every date decision in the engine goes through a Clock so tests can pin the
calendar with a fixed clock (tests/conftest.py). Dates are resolved in the user's local calendar
day; an unknown timezone name falls back to settings.DEFAULT_TIMEZONE.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings

logger = logging.getLogger(__name__)


def resolve_zone(tz_name: Optional[str]) -> ZoneInfo:
    name = tz_name or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to %s", name, settings.DEFAULT_TIMEZONE)
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


class Clock:
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)

    def today(self, tz_name: Optional[str] = None) -> date:
        return self.now().astimezone(resolve_zone(tz_name)).date()


_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a fixed clock."""
    return _clock
