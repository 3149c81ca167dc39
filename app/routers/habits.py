"""
Habits router.

POST   /habits                                  — create
GET    /habits                                  — list (runs the daily cycle lazily)
GET    /habits/summary                          — overall health, at-risk count, buckets
POST   /habits/daily-cycle                      — run today's cycle now
GET    /habits/{id}                             — one habit
PATCH  /habits/{id}                             — edit target / schedule / name
DELETE /habits/{id}                             — archive
POST   /habits/{id}/completions/increment       — today's count + 1
POST   /habits/{id}/completions/decrement       — today's count - 1 (0 deletes)
GET    /habits/{id}/completions                 — ledger rows
PUT    /habits/{id}/completions/{day}           — set a day's count
DELETE /habits/{id}/completions/{day}           — remove a day's entry
GET    /habits/{id}/streak                      — streak as of a date
POST   /habits/{id}/vitality/evaluate           — bring health up to date
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.db.base import get_db
from app.models.habit import Habit
from app.models.user import User
from app.routers.deps import get_current_user
from app.schemas.habit import (
    CompletionListResponse,
    CompletionResponse,
    CompletionSet,
    DailyCycleResponse,
    HabitCreate,
    HabitResponse,
    HabitSummaryResponse,
    HabitUpdate,
    HealthStateOut,
    StreakResponse,
)
from app.services import habits as habit_service
from app.services import ledger
from app.services.daily_cycle import run_daily_cycle
from app.services.vitality import health_state

router = APIRouter(prefix="/habits", tags=["habits"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _habit_to_response(habit: Habit, today_count: int = 0) -> HabitResponse:
    hs = health_state(habit.health)
    return HabitResponse(
        id=habit.id,
        name=habit.name,
        daily_target=habit.daily_target,
        schedule_mode=habit.schedule_mode,
        schedule_config=habit.schedule_config or {},
        current_streak=habit.current_streak,
        health=habit.health,
        health_state=HealthStateOut(state=hs.state, label=hs.label, color=hs.color),
        last_missed_date=str(habit.last_missed_date) if habit.last_missed_date else None,
        consecutive_misses=habit.consecutive_misses,
        misses_this_week=habit.misses_this_week,
        last_evaluated_on=str(habit.last_evaluated_on) if habit.last_evaluated_on else None,
        last_health_check_at=(
            habit.last_health_check_at.isoformat() if habit.last_health_check_at else None
        ),
        today_count=today_count,
        archived=habit.archived_at is not None,
    )


def _with_today(db: Session, habit: Habit, user: User, clock: Clock) -> HabitResponse:
    return _habit_to_response(habit, ledger.count_on(db, habit.id, clock.today(user.timezone)))


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
)
def habits_create(
    payload: HabitCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.create_habit(
        db, user, clock,
        name=payload.name,
        daily_target=payload.daily_target,
        schedule_mode=payload.schedule_mode,
        schedule_config=payload.schedule_config,
    )
    return _habit_to_response(habit)


@router.get("", response_model=list[HabitResponse], summary="List active habits")
def habits_list(
    include_archived: bool = Query(default=False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    The first read of the user's day runs the daily cycle, so health and
    streaks are current even when no scheduler ran.
    """
    run_daily_cycle(db, user, clock)
    habits = habit_service.list_habits(db, user.id, include_archived=include_archived)
    return [_with_today(db, h, user, clock) for h in habits]


@router.get("/summary", response_model=HabitSummaryResponse, summary="Health overview")
def habits_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    run_daily_cycle(db, user, clock)
    summary = habit_service.summarize(habit_service.list_habits(db, user.id))
    return HabitSummaryResponse(
        total=summary.total,
        overall_health=summary.overall_health,
        at_risk=summary.at_risk,
        by_state=summary.by_state,
    )


@router.post(
    "/daily-cycle",
    response_model=DailyCycleResponse,
    summary="Run today's vitality / streak / checklist cycle",
)
def habits_daily_cycle(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Idempotent per local day: a second call returns `ran: false`."""
    result = run_daily_cycle(db, user, clock)
    return DailyCycleResponse(
        day=str(result.day),
        ran=result.ran,
        habits_evaluated=result.habits_evaluated,
        steps_reset=result.steps_reset,
    )


# ---------------------------------------------------------------------------
# Single habit
# ---------------------------------------------------------------------------

@router.get("/{habit_id}", response_model=HabitResponse, summary="Get a habit")
def habits_get(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _with_today(db, habit_service.get_habit(db, user.id, habit_id), user, clock)


@router.patch("/{habit_id}", response_model=HabitResponse, summary="Edit a habit")
def habits_update(
    habit_id: int,
    payload: HabitUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    habit = habit_service.update_habit(
        db, habit, user, clock, **payload.model_dump(exclude_unset=True)
    )
    return _with_today(db, habit, user, clock)


@router.delete("/{habit_id}", response_model=HabitResponse, summary="Archive a habit")
def habits_archive(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    return _habit_to_response(habit_service.archive_habit(db, habit, clock))


# ---------------------------------------------------------------------------
# Completion ledger
# ---------------------------------------------------------------------------

def _completion_response(habit: Habit, day: date, count: int) -> CompletionResponse:
    return CompletionResponse(
        habit_id=habit.id,
        day=str(day),
        count=count,
        streak=habit.current_streak,
    )


@router.post(
    "/{habit_id}/completions/increment",
    response_model=CompletionResponse,
    summary="Add one unit to today's count",
)
def completions_increment(
    habit_id: int,
    amount: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    count = habit_service.increment_today(db, habit, user, clock, amount)
    return _completion_response(habit, clock.today(user.timezone), count)


@router.post(
    "/{habit_id}/completions/decrement",
    response_model=CompletionResponse,
    summary="Remove one unit from today's count",
)
def completions_decrement(
    habit_id: int,
    amount: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    count = habit_service.decrement_today(db, habit, user, clock, amount)
    return _completion_response(habit, clock.today(user.timezone), count)


@router.get(
    "/{habit_id}/completions",
    response_model=CompletionListResponse,
    summary="Ledger rows, oldest first",
)
def completions_list(
    habit_id: int,
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    rows = ledger.history(db, habit.id, start=start, end=end)
    return CompletionListResponse(
        habit_id=habit.id,
        items=[{"day": str(d), "count": c} for d, c in sorted(rows.items())],
    )


@router.put(
    "/{habit_id}/completions/{day}",
    response_model=CompletionResponse,
    summary="Set the count for a day (0 deletes the entry)",
)
def completions_set(
    habit_id: int,
    day: date,
    payload: CompletionSet,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    count = habit_service.set_completion(db, habit, user, clock, day, payload.count)
    return _completion_response(habit, day, count)


@router.delete(
    "/{habit_id}/completions/{day}",
    response_model=CompletionResponse,
    summary="Remove a day's entry",
)
def completions_delete(
    habit_id: int,
    day: date,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    habit_service.remove_completion(db, habit, user, clock, day)
    return _completion_response(habit, day, 0)


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------

@router.get(
    "/{habit_id}/streak",
    response_model=StreakResponse,
    summary="Streak ending at a date",
)
def habits_streak(
    habit_id: int,
    as_of: Optional[date] = Query(
        default=None,
        description="ISO date. Defaults to the user's today; only today updates current_streak.",
        examples=["2026-02-20"],
    ),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    today = clock.today(user.timezone)
    reference = as_of or today
    streak = habit_service.recompute_streak(db, habit, user, clock, as_of=reference)
    db.commit()
    return StreakResponse(
        habit_id=habit.id,
        as_of=str(reference),
        streak=streak,
        persisted=reference == today,
    )


@router.post(
    "/{habit_id}/vitality/evaluate",
    response_model=HabitResponse,
    summary="Bring the habit's health up to date",
)
def habits_evaluate_vitality(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    habit = habit_service.get_habit(db, user.id, habit_id)
    habit_service.evaluate_habit_vitality(db, habit, user, clock)
    return _with_today(db, habit, user, clock)
