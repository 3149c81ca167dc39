"""
Vitality (health) engine — an explicit state machine.

A habit's health is a score in [0, 100] updated once per local calendar day
from the outcome of the previous day.

Transition for the evaluated day D (normally "yesterday")
--------------------------------------------------------
  met       consecutive_misses → 0, last_missed_date → None, then
            health += 12 (capped at 100) whenever health < 100
  missed    skipped entirely if last_missed_date == D (a miss is recorded once)
            penalty:
              previous miss was D - 1 (consecutive chain):
                2nd consecutive → 30, 3rd → 40, 4th and beyond → 100
              else misses_this_week >= 1 → 20
              else → 10
            health = max(health - penalty, 0)
            consecutive_misses = previous + 1 if consecutive else 1
            misses_this_week += 1, last_missed_date = D
  not due   no change (scheduled habits on a rest day)

After the transition, `misses_this_week` resets when today is the first day
of the week (Monday by default).

`last_evaluated_on` is the idempotency key: evaluating the same `today`
twice is a no-op, and `catch_up` replays every skipped day so lazy
evaluation lands on the same state the daily job would have produced.

Pure; no DB access, no clock. Never raises for a valid state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

HEALTH_MIN = 0
HEALTH_MAX = 100

PENALTY_FIRST_MISS = 10
PENALTY_REPEAT_WEEKLY_MISS = 20
PENALTY_CONSECUTIVE = {2: 30, 3: 40}
PENALTY_ZERO_OUT = 100


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VitalityState:
    health: int = HEALTH_MAX
    consecutive_misses: int = 0
    misses_this_week: int = 0
    last_missed_date: Optional[date] = None
    last_evaluated_on: Optional[date] = None


@dataclass(frozen=True)
class DailyOutcome:
    day: date
    met: bool
    due: bool = True


@dataclass(frozen=True)
class HealthState:
    state: str
    label: str
    color: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clamp_health(value: int) -> int:
    return max(HEALTH_MIN, min(HEALTH_MAX, value))


def sanitize(state: VitalityState) -> VitalityState:
    """Clamp out-of-range persisted values instead of failing the pass."""
    fixed = replace(
        state,
        health=clamp_health(state.health),
        consecutive_misses=max(state.consecutive_misses, 0),
        misses_this_week=max(state.misses_this_week, 0),
    )
    if fixed != state:
        logger.warning("Clamped invalid vitality state %s -> %s", state, fixed)
    return fixed


def is_consecutive_miss(state: VitalityState, day: date) -> bool:
    return state.last_missed_date is not None and state.last_missed_date == day - timedelta(days=1)


def penalty_for(state: VitalityState, day: date) -> int:
    """Health lost for missing `day`, given the misses recorded so far."""
    if is_consecutive_miss(state, day):
        return PENALTY_CONSECUTIVE.get(state.consecutive_misses + 1, PENALTY_ZERO_OUT)
    if state.misses_this_week >= 1:
        return PENALTY_REPEAT_WEEKLY_MISS
    return PENALTY_FIRST_MISS


def health_state(health: int) -> HealthState:
    if health >= 80:
        return HealthState("thriving", "Thriving", "#7CB342")
    if health >= 50:
        return HealthState("steady", "Steady", "#22D3EE")
    if health >= 25:
        return HealthState("struggling", "Struggling", "#E5C730")
    return HealthState("critical", "Critical", "#F8796D")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def apply_outcome(
    state: VitalityState,
    outcome: DailyOutcome,
    recovery: Optional[int] = None,
) -> VitalityState:
    """Apply one day's outcome. Does not touch the weekly counter reset."""
    if not outcome.due:
        return state
    if recovery is None:
        recovery = settings.HEALTH_RECOVERY_PER_DAY

    if outcome.met:
        if state.consecutive_misses > 0 or state.last_missed_date is not None:
            state = replace(state, consecutive_misses=0, last_missed_date=None)
        if state.health < HEALTH_MAX:
            state = replace(state, health=clamp_health(state.health + recovery))
        return state

    if state.last_missed_date == outcome.day:
        return state

    penalty = penalty_for(state, outcome.day)
    consecutive = is_consecutive_miss(state, outcome.day)
    new_state = replace(
        state,
        health=max(state.health - penalty, HEALTH_MIN),
        consecutive_misses=state.consecutive_misses + 1 if consecutive else 1,
        misses_this_week=state.misses_this_week + 1,
        last_missed_date=outcome.day,
    )
    logger.debug(
        "Miss on %s: penalty=%d health %d -> %d",
        outcome.day, penalty, state.health, new_state.health,
    )
    return new_state


def evaluate_vitality(
    state: VitalityState,
    today: date,
    met_yesterday: bool,
    *,
    due_yesterday: bool = True,
    week_start: Optional[int] = None,
    recovery: Optional[int] = None,
) -> VitalityState:
    """
    One daily cycle for `today`: judge yesterday, then apply the weekly reset.
    A state already evaluated for `today` (or later) is returned unchanged.
    """
    if state.last_evaluated_on is not None and state.last_evaluated_on >= today:
        return state
    if week_start is None:
        week_start = settings.WEEK_START_DAY

    state = sanitize(state)
    yesterday = today - timedelta(days=1)
    state = apply_outcome(
        state,
        DailyOutcome(day=yesterday, met=met_yesterday, due=due_yesterday),
        recovery=recovery,
    )
    if today.weekday() == week_start and state.misses_this_week != 0:
        state = replace(state, misses_this_week=0)
    return replace(state, last_evaluated_on=today)


def catch_up(
    state: VitalityState,
    today: date,
    met_on: Callable[[date], bool],
    due_on: Optional[Callable[[date], bool]] = None,
    *,
    week_start: Optional[int] = None,
    max_days: Optional[int] = None,
    recovery: Optional[int] = None,
) -> VitalityState:
    """
    Run `evaluate_vitality` for every day after `state.last_evaluated_on` up
    to and including `today`. A never-evaluated state only runs `today`.
    Gaps longer than `max_days` replay the most recent `max_days` only.
    """
    if max_days is None:
        max_days = settings.VITALITY_MAX_CATCH_UP_DAYS
    if state.last_evaluated_on is not None and state.last_evaluated_on >= today:
        return state

    if state.last_evaluated_on is None:
        start = today
    else:
        start = state.last_evaluated_on + timedelta(days=1)
        earliest = today - timedelta(days=max(max_days, 1) - 1)
        if start < earliest:
            logger.info("Vitality catch-up gap from %s truncated to %s", start, earliest)
            start = earliest

    day = start
    while day <= today:
        yesterday = day - timedelta(days=1)
        state = evaluate_vitality(
            state,
            day,
            met_on(yesterday),
            due_yesterday=due_on(yesterday) if due_on is not None else True,
            week_start=week_start,
            recovery=recovery,
        )
        day += timedelta(days=1)
    return state
