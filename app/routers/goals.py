"""
Goals router.

POST   /goals                  — create
GET    /goals                  — list (?status=active|completed|all)
GET    /goals/{id}             — one goal with progress and steps
PATCH  /goals/{id}             — edit
DELETE /goals/{id}             — delete with its steps
POST   /goals/{id}/increment   — counted goals: current_count + amount (capped)
POST   /goals/{id}/decrement   — counted goals: current_count - amount (floored at 0)
"""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.db.base import get_db
from app.models.checklist_step import ChecklistStep, ParentType
from app.models.goal import Goal
from app.models.user import User
from app.routers.deps import get_current_user
from app.schemas.checklist import ChecklistStepResponse
from app.schemas.common import error_responses
from app.schemas.goal import GoalCreate, GoalResponse, GoalUpdate
from app.services import goals as goal_service
from app.services.checklist import ParentRef, list_steps

router = APIRouter(prefix="/goals", tags=["goals"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _ev(v) -> str:
    """Extract bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def step_to_response(step: ChecklistStep) -> ChecklistStepResponse:
    return ChecklistStepResponse(
        id=step.id,
        parent_type=step.parent_type,
        parent_id=step.parent_id,
        name=step.name,
        completed=step.completed,
        completed_at=step.completed_at.isoformat() if step.completed_at else None,
        position=step.position,
    )


def _goal_to_response(db: Session, goal: Goal) -> GoalResponse:
    steps = list_steps(db, goal.user_id, ParentRef(ParentType.goal, goal.id))
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        description=goal.description,
        goal_type=_ev(goal.goal_type),
        target_count=goal.target_count,
        current_count=goal.current_count,
        unit_name=goal.unit_name,
        completed=goal.completed,
        completed_at=goal.completed_at.isoformat() if goal.completed_at else None,
        position=goal.position,
        progress=goal_service.progress_of(db, goal),
        checklist_steps=[step_to_response(s) for s in steps],
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a goal",
    responses=error_responses(r422="Counted goal without a positive target_count."),
)
def goals_create(
    payload: GoalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    goal = goal_service.create_goal(db, user.id, clock, **payload.model_dump())
    return _goal_to_response(db, goal)


@router.get("", response_model=list[GoalResponse], summary="List goals")
def goals_list(
    status_filter: Literal["active", "completed", "all"] = Query(default="active", alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        _goal_to_response(db, g)
        for g in goal_service.list_goals(db, user.id, status=status_filter)
    ]


@router.get("/{goal_id}", response_model=GoalResponse, summary="Get a goal")
def goals_get(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _goal_to_response(db, goal_service.get_goal(db, user.id, goal_id))


@router.patch("/{goal_id}", response_model=GoalResponse, summary="Edit a goal")
def goals_update(
    goal_id: int,
    payload: GoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    goal = goal_service.update_goal(db, goal, clock, **payload.model_dump(exclude_unset=True))
    return _goal_to_response(db, goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a goal")
def goals_delete(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal_service.delete_goal(db, goal_service.get_goal(db, user.id, goal_id))


@router.post(
    "/{goal_id}/increment",
    response_model=GoalResponse,
    summary="Increase a counted goal's count",
    responses=error_responses(r404="Goal not found.", r409="Goal is not a counted goal."),
)
def goals_increment(
    goal_id: int,
    amount: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    return _goal_to_response(db, goal_service.increment_goal(db, goal, clock, amount))


@router.post(
    "/{goal_id}/decrement",
    response_model=GoalResponse,
    summary="Decrease a counted goal's count",
    responses=error_responses(r404="Goal not found.", r409="Goal is not a counted goal."),
)
def goals_decrement(
    goal_id: int,
    amount: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    return _goal_to_response(db, goal_service.decrement_goal(db, goal, clock, amount))
