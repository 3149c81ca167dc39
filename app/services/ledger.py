"""
Completion ledger — data access for habit_completions.

Public API
----------
find_entry(db, habit_id, day)          -> HabitCompletion | None
count_on(db, habit_id, day)            -> int      (0 when absent)
history(db, habit_id, start, end)      -> dict[date, int]
count_lookup(db, habit_id, until)      -> Callable[[date], int]
upsert_entry(db, habit_id, day, count) -> HabitCompletion | None
delete_entry(db, habit_id, day)        -> bool

Every writer flushes but does NOT commit; app.services.habits wraps them
with the streak recompute and commits once.
"""
from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.habit_completion import HabitCompletion


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

def find_entry(db: Session, habit_id: int, day: date) -> Optional[HabitCompletion]:
    return (
        db.query(HabitCompletion)
        .filter(HabitCompletion.habit_id == habit_id, HabitCompletion.day == day)
        .first()
    )


def count_on(db: Session, habit_id: int, day: date) -> int:
    entry = find_entry(db, habit_id, day)
    return entry.count if entry else 0


def history(
    db: Session,
    habit_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> dict[date, int]:
    """Return {day: count} for the habit, optionally bounded (inclusive)."""
    q = db.query(HabitCompletion.day, HabitCompletion.count).filter(
        HabitCompletion.habit_id == habit_id
    )
    if start is not None:
        q = q.filter(HabitCompletion.day >= start)
    if end is not None:
        q = q.filter(HabitCompletion.day <= end)
    return {row.day: row.count for row in q.all()}


def count_lookup(db: Session, habit_id: int, until: Optional[date] = None) -> Callable[[date], int]:
    """
    Load the ledger once and return a `day -> count` callable for the pure
    engine, so backward scans do not issue one query per day.
    """
    counts = history(db, habit_id, end=until)
    return lambda day: counts.get(day, 0)


# ---------------------------------------------------------------------------
# Writers — flush only
# ---------------------------------------------------------------------------

def upsert_entry(db: Session, habit_id: int, day: date, count: int) -> Optional[HabitCompletion]:
    """
    Set the count for (habit, day). A count of 0 or less removes the entry,
    since absence means zero. Returns the surviving entry, if any.
    """
    if count <= 0:
        delete_entry(db, habit_id, day)
        return None

    entry = find_entry(db, habit_id, day)
    if entry is not None:
        entry.count = count
        db.flush()
        return entry

    savepoint = db.begin_nested()
    try:
        entry = HabitCompletion(habit_id=habit_id, day=day, count=count)
        db.add(entry)
        db.flush()
        savepoint.commit()
    except IntegrityError:
        # Lost an insert race on (habit_id, day): the row exists now.
        savepoint.rollback()
        entry = find_entry(db, habit_id, day)
        entry.count = count
        db.flush()
    return entry


def delete_entry(db: Session, habit_id: int, day: date) -> bool:
    entry = find_entry(db, habit_id, day)
    if entry is None:
        return False
    db.delete(entry)
    db.flush()
    return True
