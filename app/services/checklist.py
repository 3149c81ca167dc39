"""
Checklist service and the goal completion cascade.

Steps belong to a goal, task, habit or list, addressed by a ParentRef. Any
mutation under a goal re-evaluates that goal's completion in the same
transaction:

  1. write the step and flush     (the step set is now current)
  2. refresh_completion(goal)     (reads the flushed step set)
  3. one commit for both

so no reader can see a goal whose `completed` flag disagrees with its steps.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.errors import ChecklistStepNotFoundError, ParentNotFoundError
from app.models.checklist_list import ChecklistList
from app.models.checklist_step import ChecklistStep, ParentType
from app.models.goal import Goal
from app.models.habit import Habit
from app.models.task import Task
from app.services.goals import refresh_completion

logger = logging.getLogger(__name__)

_PARENT_MODELS = {
    ParentType.goal: Goal,
    ParentType.task: Task,
    ParentType.habit: Habit,
    ParentType.list: ChecklistList,
}


@dataclass(frozen=True)
class ParentRef:
    kind: ParentType
    id: int

    @classmethod
    def of(cls, step: ChecklistStep) -> "ParentRef":
        return cls(ParentType(step.parent_type), step.parent_id)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def resolve_parent(db: Session, user_id: int, ref: ParentRef):
    model = _PARENT_MODELS[ref.kind]
    parent = db.get(model, ref.id)
    if parent is None or parent.user_id != user_id:
        raise ParentNotFoundError(ref.kind.value, ref.id)
    return parent


def _steps_query(db: Session, ref: ParentRef):
    return db.query(ChecklistStep).filter(
        ChecklistStep.parent_type == ref.kind.value,
        ChecklistStep.parent_id == ref.id,
    )


def _set_completed(step: ChecklistStep, completed: bool, now: datetime) -> None:
    """completed_at follows the flag: stamped on false -> true, cleared on true -> false."""
    if completed and not step.completed:
        step.completed = True
        if step.completed_at is None:
            step.completed_at = now
    elif not completed and step.completed:
        step.completed = False
        step.completed_at = None


def _cascade(db: Session, ref: ParentRef, now: datetime) -> None:
    if ref.kind != ParentType.goal:
        return
    goal = db.get(Goal, ref.id)
    if goal is not None:
        refresh_completion(db, goal, now)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def list_steps(db: Session, user_id: int, ref: ParentRef) -> list[ChecklistStep]:
    resolve_parent(db, user_id, ref)
    return (
        _steps_query(db, ref)
        .order_by(ChecklistStep.position, ChecklistStep.created_at, ChecklistStep.id)
        .all()
    )


def get_step(db: Session, user_id: int, step_id: int) -> ChecklistStep:
    step = (
        db.query(ChecklistStep)
        .filter(ChecklistStep.id == step_id, ChecklistStep.user_id == user_id)
        .first()
    )
    if step is None:
        raise ChecklistStepNotFoundError(step_id)
    return step


def add_step(
    db: Session,
    user_id: int,
    ref: ParentRef,
    clock: Clock,
    name: str,
    completed: bool = False,
    position: Optional[int] = None,
) -> ChecklistStep:
    """Append a step (after the last one unless `position` is given)."""
    resolve_parent(db, user_id, ref)
    now = clock.now()
    if position is None:
        last = (
            db.query(func.max(ChecklistStep.position))
            .filter(
                ChecklistStep.parent_type == ref.kind.value,
                ChecklistStep.parent_id == ref.id,
            )
            .scalar()
        )
        position = 0 if last is None else last + 1

    step = ChecklistStep(
        user_id=user_id,
        parent_type=ref.kind.value,
        parent_id=ref.id,
        name=name,
        completed=False,
        position=position,
    )
    _set_completed(step, completed, now)
    db.add(step)
    db.flush()
    _cascade(db, ref, now)
    db.commit()
    db.refresh(step)
    return step


def update_step(
    db: Session,
    user_id: int,
    step_id: int,
    clock: Clock,
    name: Optional[str] = None,
    completed: Optional[bool] = None,
    position: Optional[int] = None,
) -> ChecklistStep:
    step = get_step(db, user_id, step_id)
    now = clock.now()
    if name is not None:
        step.name = name
    if position is not None:
        step.position = position
    if completed is not None:
        _set_completed(step, completed, now)
    db.flush()
    _cascade(db, ParentRef.of(step), now)
    db.commit()
    db.refresh(step)
    return step


def delete_step(db: Session, user_id: int, step_id: int, clock: Clock) -> None:
    step = get_step(db, user_id, step_id)
    ref = ParentRef.of(step)
    db.delete(step)
    db.flush()
    _cascade(db, ref, clock.now())
    db.commit()


def reorder_steps(
    db: Session,
    user_id: int,
    ref: ParentRef,
    step_ids: list[int],
) -> list[ChecklistStep]:
    """Assign positions 0..n-1 in the order given. Every id must belong to the parent."""
    resolve_parent(db, user_id, ref)
    steps = {s.id: s for s in _steps_query(db, ref).all()}
    for step_id in step_ids:
        if step_id not in steps:
            raise ChecklistStepNotFoundError(step_id)
    for index, step_id in enumerate(step_ids):
        steps[step_id].position = index
    db.commit()
    return list_steps(db, user_id, ref)


def reset_steps(db: Session, kind: ParentType, parent_ids: Iterable[int]) -> int:
    """Uncheck every step under the given parents. Flushes only."""
    ids = list(parent_ids)
    if not ids:
        return 0
    updated = (
        db.query(ChecklistStep)
        .filter(
            ChecklistStep.parent_type == kind.value,
            ChecklistStep.parent_id.in_(ids),
            ChecklistStep.completed.is_(True),
        )
        .update({"completed": False, "completed_at": None}, synchronize_session=False)
    )
    db.flush()
    return updated
