"""
Goal Progress Engine.

Progress
--------
  counted      round(current_count / target_count * 100), capped at 100;
               0 when target_count is 0 or missing
  named_steps  round(completed_steps / total_steps * 100), capped at 100;
               0 when there are no steps

Rounding is half-up (2.5% → 3%), not Python's banker's rounding.

Completion transition
---------------------
  counted      open → complete when current >= target;
               complete → open when current < target
  named_steps  same, on completed_steps vs total_steps, but only when the
               goal has at least one step; a goal with no steps is never
               auto-completed or auto-reopened

Pure; no DB access. Callers pass `now` for the completed_at timestamp.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.models.goal import GoalType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionChange:
    """New values for (completed, completed_at) when a transition fires."""
    completed: bool
    completed_at: Optional[datetime]


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

def _percent(part: int, whole: int) -> int:
    raw = Decimal(part) * 100 / Decimal(whole)
    pct = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(pct, 100))


def counted_progress(current_count: int, target_count: Optional[int]) -> int:
    if not target_count:
        return 0
    return _percent(current_count, target_count)


def steps_progress(completed_steps: int, total_steps: int) -> int:
    if total_steps == 0:
        return 0
    return _percent(completed_steps, total_steps)


def goal_progress(
    goal_type: GoalType | str,
    current_count: int = 0,
    target_count: Optional[int] = None,
    completed_steps: int = 0,
    total_steps: int = 0,
) -> int:
    if GoalType(goal_type) == GoalType.counted:
        return counted_progress(current_count, target_count)
    return steps_progress(completed_steps, total_steps)


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------

def clamp_count(value: int, target_count: Optional[int]) -> int:
    """Keep a counted goal's current_count within [0, target_count]."""
    clamped = max(value, 0)
    if target_count is not None:
        clamped = min(clamped, target_count)
    if clamped != value:
        logger.debug("current_count %d clamped to %d (target=%s)", value, clamped, target_count)
    return clamped


def increment(current_count: int, amount: int, target_count: int) -> int:
    return min(current_count + amount, target_count)


def decrement(current_count: int, amount: int) -> int:
    return max(current_count - amount, 0)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

def completion_transition(
    goal_type: GoalType | str,
    completed: bool,
    now: datetime,
    *,
    current_count: int = 0,
    target_count: Optional[int] = None,
    completed_steps: int = 0,
    total_steps: int = 0,
) -> Optional[CompletionChange]:
    """Return the change to apply, or None when the flag is already right."""
    if GoalType(goal_type) == GoalType.counted:
        if target_count is None:
            return None
        reached = current_count >= target_count
    else:
        if total_steps == 0:
            return None
        reached = completed_steps >= total_steps

    if reached and not completed:
        return CompletionChange(completed=True, completed_at=now)
    if not reached and completed:
        return CompletionChange(completed=False, completed_at=None)
    return None
