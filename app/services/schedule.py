"""
Habit schedules — which calendar days a habit is due on.

Modes
-----
  flexible       every day; a day counts when count >= daily_target
  specific_days  schedule_config["days_of_week"]: list of date.weekday() values
                 (Monday = 0 … Sunday = 6); a due day counts when count >= 1
  interval       every `interval` units from `anchor_date` (`interval_days` is
                 read as `interval` for older configs; the anchor defaults to
                 the user's local day of creation, stamped by the habit service):
                   days   → (day - anchor).days % interval == 0
                   weeks  → same weekday as anchor, on every Nth week
                   months → same day-of-month as anchor (clamped to the month's
                            last day), on every Nth month

Pure; no DB access.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from app.core.errors import ValidationFailedError
from app.models.habit import ScheduleMode

INTERVAL_UNITS = ("days", "weeks", "months")


@dataclass(frozen=True)
class Schedule:
    mode: str = ScheduleMode.flexible.value
    config: dict[str, Any] = field(default_factory=dict)
    anchor: Optional[date] = None

    @classmethod
    def for_habit(cls, habit) -> "Schedule":
        return cls(
            mode=_mode_value(habit.schedule_mode),
            config=dict(habit.schedule_config or {}),
            anchor=_parse_anchor(habit.schedule_config or {}),
        )

    @property
    def is_flexible(self) -> bool:
        return self.mode == ScheduleMode.flexible.value

    def required_count(self, daily_target: int) -> int:
        """Units needed for a due day to count as met."""
        return daily_target if self.is_flexible else 1

    def is_due(self, day: date) -> bool:
        if self.mode == ScheduleMode.specific_days.value:
            return day.weekday() in (self.config.get("days_of_week") or [])
        if self.mode == ScheduleMode.interval.value:
            return self._interval_due(day)
        return True

    def _interval_due(self, day: date) -> bool:
        anchor = self.anchor or day
        interval = int(interval_of(self.config) or 1)
        unit = self.config.get("interval_unit") or "days"

        if unit == "weeks":
            if day.weekday() != anchor.weekday():
                return False
            weeks_diff = round((day - anchor).days / 7)
            return weeks_diff % interval == 0
        if unit == "months":
            last_day = calendar.monthrange(day.year, day.month)[1]
            if day.day != min(anchor.day, last_day):
                return False
            months_diff = (day.year * 12 + day.month) - (anchor.year * 12 + anchor.month)
            return months_diff % interval == 0
        return (day - anchor).days % interval == 0


def interval_of(config: dict[str, Any]) -> Any:
    """`interval`, or the older `interval_days` key for day-unit schedules."""
    if config.get("interval") is not None:
        return config["interval"]
    return config.get("interval_days")


def stamp_anchor(
    mode: str, config: Optional[dict[str, Any]], today: date
) -> dict[str, Any]:
    """
    Interval schedules count from `anchor_date`; fill it with the user's
    local `today` when the caller did not give one. Returns a new dict.
    """
    config = dict(config or {})
    if mode == ScheduleMode.interval.value and not config.get("anchor_date"):
        config["anchor_date"] = today.isoformat()
    return config


def _mode_value(mode) -> str:
    return mode.value if hasattr(mode, "value") else str(mode)


def _parse_anchor(config: dict[str, Any]) -> Optional[date]:
    raw = config.get("anchor_date")
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        return None


def validate_schedule(mode: str, config: Optional[dict[str, Any]]) -> None:
    """Reject malformed schedule configs at the boundary."""
    config = config or {}
    valid_modes = [m.value for m in ScheduleMode]
    if mode not in valid_modes:
        raise ValidationFailedError("schedule_mode", f"schedule_mode must be one of {valid_modes}")

    if mode == ScheduleMode.specific_days.value:
        days = config.get("days_of_week")
        if days is not None and not (
            isinstance(days, list)
            and all(isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6 for d in days)
        ):
            raise ValidationFailedError(
                "schedule_config.days_of_week", "days_of_week must be a list of integers 0-6"
            )
    elif mode == ScheduleMode.interval.value:
        interval = interval_of(config)
        if interval is not None and (
            not isinstance(interval, int) or isinstance(interval, bool) or interval < 1
        ):
            raise ValidationFailedError(
                "schedule_config.interval", "interval must be a positive integer"
            )
        unit = config.get("interval_unit")
        if unit is not None and unit not in INTERVAL_UNITS:
            raise ValidationFailedError(
                "schedule_config.interval_unit", "interval_unit must be days, weeks, or months"
            )
        if config.get("anchor_date") and _parse_anchor(config) is None:
            raise ValidationFailedError(
                "schedule_config.anchor_date", "anchor_date must be an ISO date"
            )
