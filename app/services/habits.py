"""
Habit service: CRUD, ledger mutations with streak recompute, and vitality
evaluation. Bridges the pure engine (streak, vitality, schedule) and the DB.

Public API
----------
create_habit / get_habit / list_habits / update_habit / archive_habit
set_completion(db, habit, user, clock, day, count)      -> int
remove_completion(db, habit, user, clock, day)          -> bool
increment_today(db, habit, user, clock, amount)         -> int
decrement_today(db, habit, user, clock, amount)         -> int
recompute_streak(db, habit, user, clock, as_of)         -> int
evaluate_habit_vitality(db, habit, user, clock)         -> VitalityState
summarize(habits)                                       -> HabitSummary

Every ledger mutation recomputes the streak for the user's today and
commits once, so callers never see a stale `current_streak`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.errors import HabitNotFoundError, ValidationFailedError
from app.models.habit import Habit, ScheduleMode
from app.models.user import User
from app.services import ledger
from app.services.schedule import Schedule, stamp_anchor, validate_schedule
from app.services.streak import compute_streak
from app.services.vitality import VitalityState, catch_up, health_state

logger = logging.getLogger(__name__)

AT_RISK_THRESHOLD = 50


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def _validate_target(daily_target: int) -> None:
    if daily_target is None or daily_target <= 0:
        raise ValidationFailedError("daily_target", "daily_target must be a positive integer.")


def create_habit(
    db: Session,
    user: User,
    clock: Clock,
    name: str,
    daily_target: int = 1,
    schedule_mode: str = ScheduleMode.flexible.value,
    schedule_config: Optional[dict[str, Any]] = None,
) -> Habit:
    """
    New habits start at full health and count as evaluated for today, so the
    first vitality pass judges the first full day, not the day before creation.
    """
    _validate_target(daily_target)
    validate_schedule(schedule_mode, schedule_config)
    today = clock.today(user.timezone)
    habit = Habit(
        user_id=user.id,
        name=name,
        daily_target=daily_target,
        schedule_mode=schedule_mode,
        schedule_config=stamp_anchor(schedule_mode, schedule_config, today),
        health=100,
        current_streak=0,
        consecutive_misses=0,
        misses_this_week=0,
        last_evaluated_on=today,
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    logger.info("Created habit %s for user %s", habit.id, user.id)
    return habit


def get_habit(db: Session, user_id: int, habit_id: int) -> Habit:
    habit = (
        db.query(Habit)
        .filter(Habit.id == habit_id, Habit.user_id == user_id)
        .first()
    )
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def list_habits(db: Session, user_id: int, include_archived: bool = False) -> list[Habit]:
    q = db.query(Habit).filter(Habit.user_id == user_id)
    if not include_archived:
        q = q.filter(Habit.archived_at.is_(None))
    return q.order_by(Habit.id).all()


def update_habit(
    db: Session,
    habit: Habit,
    user: User,
    clock: Clock,
    **fields: Any,
) -> Habit:
    """Apply editable fields. A target or schedule change recomputes the streak."""
    if "daily_target" in fields:
        _validate_target(fields["daily_target"])
    mode = fields.get("schedule_mode", habit.schedule_mode)
    config = fields.get("schedule_config", habit.schedule_config)
    validate_schedule(mode, config)
    if {"schedule_mode", "schedule_config"} & fields.keys():
        fields["schedule_config"] = stamp_anchor(mode, config, clock.today(user.timezone))

    for key in ("name", "daily_target", "schedule_mode", "schedule_config"):
        if key in fields and fields[key] is not None:
            setattr(habit, key, fields[key])

    if {"daily_target", "schedule_mode", "schedule_config"} & fields.keys():
        db.flush()
        recompute_streak(db, habit, user, clock)
    db.commit()
    db.refresh(habit)
    return habit


def archive_habit(db: Session, habit: Habit, clock: Clock) -> Habit:
    habit.archived_at = clock.now()
    db.commit()
    db.refresh(habit)
    return habit


# ---------------------------------------------------------------------------
# Streak
# ---------------------------------------------------------------------------

def recompute_streak(
    db: Session,
    habit: Habit,
    user: User,
    clock: Clock,
    as_of: Optional[date] = None,
) -> int:
    """
    Compute the streak ending at `as_of` (default: the user's today).
    `current_streak` is written only when `as_of` is today; historical
    recomputes are read-only. Does not commit.
    """
    today = clock.today(user.timezone)
    reference = as_of or today
    schedule = Schedule.for_habit(habit)
    streak = compute_streak(
        schedule.required_count(habit.daily_target),
        reference,
        ledger.count_lookup(db, habit.id, until=reference),
        is_due=None if schedule.is_flexible else schedule.is_due,
    )
    if reference == today and habit.current_streak != streak:
        habit.current_streak = streak
    return streak


# ---------------------------------------------------------------------------
# Ledger mutations
# ---------------------------------------------------------------------------

def set_completion(
    db: Session,
    habit: Habit,
    user: User,
    clock: Clock,
    day: date,
    count: int,
) -> int:
    """Upsert the count for `day` (0 removes it). Returns the stored count."""
    entry = ledger.upsert_entry(db, habit.id, day, count)
    recompute_streak(db, habit, user, clock)
    db.commit()
    db.refresh(habit)
    return entry.count if entry else 0


def remove_completion(db: Session, habit: Habit, user: User, clock: Clock, day: date) -> bool:
    removed = ledger.delete_entry(db, habit.id, day)
    recompute_streak(db, habit, user, clock)
    db.commit()
    db.refresh(habit)
    return removed


def increment_today(db: Session, habit: Habit, user: User, clock: Clock, amount: int = 1) -> int:
    today = clock.today(user.timezone)
    return set_completion(db, habit, user, clock, today, ledger.count_on(db, habit.id, today) + amount)


def decrement_today(db: Session, habit: Habit, user: User, clock: Clock, amount: int = 1) -> int:
    """Dropping today's count to zero deletes the entry."""
    today = clock.today(user.timezone)
    current = ledger.count_on(db, habit.id, today)
    if current == 0:
        return 0
    return set_completion(db, habit, user, clock, today, max(current - amount, 0))


# ---------------------------------------------------------------------------
# Vitality
# ---------------------------------------------------------------------------

def vitality_state(habit: Habit) -> VitalityState:
    return VitalityState(
        health=habit.health,
        consecutive_misses=habit.consecutive_misses,
        misses_this_week=habit.misses_this_week,
        last_missed_date=habit.last_missed_date,
        last_evaluated_on=habit.last_evaluated_on,
    )


def _store_state(habit: Habit, state: VitalityState) -> None:
    """Write only the fields that changed."""
    for attr in (
        "health",
        "consecutive_misses",
        "misses_this_week",
        "last_missed_date",
        "last_evaluated_on",
    ):
        value = getattr(state, attr)
        if getattr(habit, attr) != value:
            setattr(habit, attr, value)


def evaluate_habit_vitality(
    db: Session,
    habit: Habit,
    user: User,
    clock: Clock,
    commit: bool = True,
) -> VitalityState:
    """
    Bring the habit's health up to date with the user's today, replaying any
    days missed since the last evaluation. Safe to call repeatedly.
    """
    today = clock.today(user.timezone)
    before = vitality_state(habit)
    schedule = Schedule.for_habit(habit)
    required = schedule.required_count(habit.daily_target)
    counts = ledger.count_lookup(db, habit.id, until=today)

    after = catch_up(
        before,
        today,
        met_on=lambda day: counts(day) >= required,
        due_on=None if schedule.is_flexible else schedule.is_due,
    )
    _store_state(habit, after)
    habit.last_health_check_at = clock.now()

    if after.last_missed_date != before.last_missed_date and after.last_missed_date:
        logger.info(
            "Habit %s missed %s: health %d -> %d (consecutive=%d)",
            habit.id, after.last_missed_date, before.health, after.health,
            after.consecutive_misses,
        )
    if commit:
        db.commit()
        db.refresh(habit)
    return after


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

@dataclass
class HabitSummary:
    total: int
    overall_health: int
    at_risk: int
    by_state: dict[str, int] = field(default_factory=dict)


def summarize(habits: list[Habit]) -> HabitSummary:
    by_state = {"thriving": 0, "steady": 0, "struggling": 0, "critical": 0}
    for h in habits:
        by_state[health_state(h.health).state] += 1
    if habits:
        mean = Decimal(sum(min(h.health, 100) for h in habits)) / Decimal(len(habits))
        overall = int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        overall = 0
    return HabitSummary(
        total=len(habits),
        overall_health=overall,
        at_risk=sum(1 for h in habits if h.health < AT_RISK_THRESHOLD),
        by_state=by_state,
    )
