"""
Goal service: persistence around the Goal Progress Engine.

Every path that can change progress (create, update, increment, decrement,
checklist mutation) ends in `refresh_completion` before the commit, so a
stored goal's `completed` flag always matches its progress.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.errors import GoalNotFoundError, GoalTypeMismatchError, ValidationFailedError
from app.models.checklist_step import ChecklistStep, ParentType
from app.models.goal import Goal, GoalType
from app.services import goal_progress
from app.services.goal_progress import CompletionChange

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "description",
    "goal_type",
    "target_count",
    "current_count",
    "unit_name",
    "position",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def step_counts(db: Session, goal_id: int) -> tuple[int, int]:
    """Return (completed_steps, total_steps) from the current step rows."""
    rows = (
        db.query(ChecklistStep.completed, func.count(ChecklistStep.id))
        .filter(
            ChecklistStep.parent_type == ParentType.goal.value,
            ChecklistStep.parent_id == goal_id,
        )
        .group_by(ChecklistStep.completed)
        .all()
    )
    completed = sum(n for done, n in rows if done)
    total = sum(n for _, n in rows)
    return completed, total


def progress_of(db: Session, goal: Goal) -> int:
    completed, total = (0, 0)
    if goal.goal_type == GoalType.named_steps:
        completed, total = step_counts(db, goal.id)
    return goal_progress.goal_progress(
        goal.goal_type,
        current_count=goal.current_count,
        target_count=goal.target_count,
        completed_steps=completed,
        total_steps=total,
    )


def _validate(goal_type: GoalType, target_count: Optional[int]) -> None:
    if goal_type == GoalType.counted and (target_count is None or target_count <= 0):
        raise ValidationFailedError(
            "target_count", "target_count must be greater than 0 for counted goals."
        )


def refresh_completion(db: Session, goal: Goal, now: datetime) -> Optional[CompletionChange]:
    """
    Re-derive `completed` / `completed_at` from current progress. Clamps an
    out-of-range `current_count` first. Flushes nothing; the caller commits.
    """
    if goal.goal_type == GoalType.counted:
        clamped = goal_progress.clamp_count(goal.current_count or 0, goal.target_count)
        if clamped != goal.current_count:
            if (goal.current_count or 0) < 0:
                logger.warning(
                    "Goal %s had negative current_count %s; clamped to %d",
                    goal.id, goal.current_count, clamped,
                )
            goal.current_count = clamped
        change = goal_progress.completion_transition(
            goal.goal_type,
            goal.completed,
            now,
            current_count=goal.current_count,
            target_count=goal.target_count,
        )
    else:
        completed, total = step_counts(db, goal.id) if goal.id is not None else (0, 0)
        change = goal_progress.completion_transition(
            goal.goal_type,
            goal.completed,
            now,
            completed_steps=completed,
            total_steps=total,
        )

    if change is not None:
        goal.completed = change.completed
        goal.completed_at = change.completed_at
        logger.info("Goal %s %s", goal.id, "completed" if change.completed else "reopened")
    return change


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def create_goal(
    db: Session,
    user_id: int,
    clock: Clock,
    name: str,
    goal_type: GoalType | str = GoalType.counted,
    target_count: Optional[int] = 1,
    current_count: int = 0,
    description: Optional[str] = None,
    unit_name: Optional[str] = None,
    position: Optional[int] = None,
) -> Goal:
    goal_type = GoalType(goal_type)
    _validate(goal_type, target_count)
    goal = Goal(
        user_id=user_id,
        name=name,
        description=description,
        goal_type=goal_type,
        target_count=target_count,
        current_count=current_count or 0,
        unit_name=unit_name,
        position=position,
        completed=False,
    )
    db.add(goal)
    db.flush()
    refresh_completion(db, goal, clock.now())
    db.commit()
    db.refresh(goal)
    return goal


def get_goal(db: Session, user_id: int, goal_id: int) -> Goal:
    goal = (
        db.query(Goal)
        .filter(Goal.id == goal_id, Goal.user_id == user_id)
        .first()
    )
    if goal is None:
        raise GoalNotFoundError(goal_id)
    return goal


def list_goals(db: Session, user_id: int, status: str = "active") -> list[Goal]:
    """status: "active" (open, unarchived), "completed", or "all" (unarchived)."""
    q = db.query(Goal).filter(Goal.user_id == user_id)
    if status == "completed":
        q = q.filter(Goal.completed.is_(True))
    elif status == "all":
        q = q.filter(Goal.archived_at.is_(None))
    else:
        q = q.filter(Goal.completed.is_(False), Goal.archived_at.is_(None))
    return q.order_by(func.coalesce(Goal.position, 999999), Goal.created_at.desc(), Goal.id).all()


def update_goal(db: Session, goal: Goal, clock: Clock, **fields: Any) -> Goal:
    for key in EDITABLE_FIELDS:
        if key in fields and fields[key] is not None:
            value = GoalType(fields[key]) if key == "goal_type" else fields[key]
            setattr(goal, key, value)
    _validate(goal.goal_type, goal.target_count)
    refresh_completion(db, goal, clock.now())
    db.commit()
    db.refresh(goal)
    return goal


def archive_goal(db: Session, goal: Goal, clock: Clock) -> Goal:
    goal.archived_at = clock.now()
    db.commit()
    db.refresh(goal)
    return goal


def delete_goal(db: Session, goal: Goal) -> None:
    """Remove the goal and the checklist steps it owns."""
    db.query(ChecklistStep).filter(
        ChecklistStep.parent_type == ParentType.goal.value,
        ChecklistStep.parent_id == goal.id,
    ).delete(synchronize_session=False)
    db.delete(goal)
    db.commit()


# ---------------------------------------------------------------------------
# Counted goals
# ---------------------------------------------------------------------------

def _require_counted(goal: Goal, operation: str) -> None:
    if goal.goal_type != GoalType.counted:
        raise GoalTypeMismatchError(goal.id, GoalType(goal.goal_type).value, operation)


def increment_goal(db: Session, goal: Goal, clock: Clock, amount: int = 1) -> Goal:
    """current_count = min(current + amount, target), completion checked in the same commit."""
    _require_counted(goal, "increment")
    goal.current_count = goal_progress.increment(goal.current_count, amount, goal.target_count)
    refresh_completion(db, goal, clock.now())
    db.commit()
    db.refresh(goal)
    return goal


def decrement_goal(db: Session, goal: Goal, clock: Clock, amount: int = 1) -> Goal:
    _require_counted(goal, "decrement")
    goal.current_count = goal_progress.decrement(goal.current_count, amount)
    refresh_completion(db, goal, clock.now())
    db.commit()
    db.refresh(goal)
    return goal
