"""
Checklists router.

GET    /checklists/{parent_type}/{parent_id}/steps           — ordered steps
POST   /checklists/{parent_type}/{parent_id}/steps           — add a step
POST   /checklists/{parent_type}/{parent_id}/steps/reorder   — set order
PATCH  /checklists/steps/{step_id}                           — rename / check / move
DELETE /checklists/steps/{step_id}                           — remove

parent_type is one of goal, task, habit, list. Any change under a goal
re-evaluates the goal's completion before the response is sent.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.db.base import get_db
from app.models.checklist_step import ParentType
from app.models.user import User
from app.routers.deps import get_current_user
from app.routers.goals import step_to_response
from app.schemas.common import error_responses
from app.schemas.checklist import (
    ChecklistReorder,
    ChecklistStepCreate,
    ChecklistStepResponse,
    ChecklistStepUpdate,
)
from app.services import checklist as checklist_service
from app.services.checklist import ParentRef

router = APIRouter(prefix="/checklists", tags=["checklists"])


@router.get(
    "/{parent_type}/{parent_id}/steps",
    response_model=list[ChecklistStepResponse],
    summary="List a parent's steps in display order",
)
def steps_list(
    parent_type: ParentType,
    parent_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    steps = checklist_service.list_steps(db, user.id, ParentRef(parent_type, parent_id))
    return [step_to_response(s) for s in steps]


@router.post(
    "/{parent_type}/{parent_id}/steps",
    response_model=ChecklistStepResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a step",
    responses=error_responses(r404="No such parent for this user."),
)
def steps_create(
    parent_type: ParentType,
    parent_id: int,
    payload: ChecklistStepCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    step = checklist_service.add_step(
        db, user.id, ParentRef(parent_type, parent_id), clock,
        name=payload.name,
        completed=payload.completed,
        position=payload.position,
    )
    return step_to_response(step)


@router.post(
    "/{parent_type}/{parent_id}/steps/reorder",
    response_model=list[ChecklistStepResponse],
    summary="Reorder steps",
)
def steps_reorder(
    parent_type: ParentType,
    parent_id: int,
    payload: ChecklistReorder,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    steps = checklist_service.reorder_steps(
        db, user.id, ParentRef(parent_type, parent_id), payload.step_ids
    )
    return [step_to_response(s) for s in steps]


@router.patch(
    "/steps/{step_id}",
    response_model=ChecklistStepResponse,
    summary="Update a step",
)
def steps_update(
    step_id: int,
    payload: ChecklistStepUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    step = checklist_service.update_step(
        db, user.id, step_id, clock, **payload.model_dump(exclude_unset=True)
    )
    return step_to_response(step)


@router.delete(
    "/steps/{step_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a step",
)
def steps_delete(
    step_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    checklist_service.delete_step(db, user.id, step_id, clock)
