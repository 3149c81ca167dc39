"""
Daily cycle — the once-per-day pass over one user's habits.

For each active habit:
  - bring vitality up to date (replaying any skipped days)
  - recompute the cached streak for today
Then uncheck every habit checklist step, so habit checklists start fresh.

Idempotency
-----------
`users.last_cycle_on` holds the local day of the last run; a second call on
the same day returns ran=False and touches nothing. The cycle can run from a
scheduler or lazily on the first read of the day; both land on the same
state, because vitality catch-up is itself day-keyed.

Ledger history is never deleted here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.models.checklist_step import ParentType
from app.models.user import User
from app.services import habits as habit_service
from app.services.checklist import reset_steps

logger = logging.getLogger(__name__)


@dataclass
class DailyCycleResult:
    day: date
    ran: bool
    habits_evaluated: int = 0
    steps_reset: int = 0


def run_daily_cycle(db: Session, user: User, clock: Clock, force: bool = False) -> DailyCycleResult:
    today = clock.today(user.timezone)
    if not force and user.last_cycle_on is not None and user.last_cycle_on >= today:
        return DailyCycleResult(day=today, ran=False)

    active = habit_service.list_habits(db, user.id)
    for habit in active:
        habit_service.evaluate_habit_vitality(db, habit, user, clock, commit=False)
        habit_service.recompute_streak(db, habit, user, clock)

    steps_reset = reset_steps(db, ParentType.habit, [h.id for h in active])
    user.last_cycle_on = today
    db.commit()

    logger.info(
        "Daily cycle for user %s on %s: %d habits, %d steps reset",
        user.id, today, len(active), steps_reset,
    )
    return DailyCycleResult(
        day=today,
        ran=True,
        habits_evaluated=len(active),
        steps_reset=steps_reset,
    )
