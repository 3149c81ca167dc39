from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.schemas.checklist import ChecklistStepResponse

GoalTypeLiteral = Literal["counted", "named_steps"]


class GoalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    description: Optional[str] = None
    goal_type: GoalTypeLiteral = "counted"
    target_count: Optional[int] = Field(
        default=1,
        description="Required and > 0 for counted goals; ignored for named_steps.",
    )
    current_count: int = Field(default=0, ge=0)
    unit_name: Optional[str] = Field(default=None, max_length=64)
    position: Optional[int] = None


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    description: Optional[str] = None
    goal_type: Optional[GoalTypeLiteral] = None
    target_count: Optional[int] = None
    current_count: Optional[int] = Field(default=None, ge=0)
    unit_name: Optional[str] = Field(default=None, max_length=64)
    position: Optional[int] = None


class GoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    goal_type: str
    target_count: Optional[int] = None
    current_count: int
    unit_name: Optional[str] = None
    completed: bool
    completed_at: Optional[str] = None
    position: Optional[int] = None
    progress: int = Field(description="0-100")
    checklist_steps: list[ChecklistStepResponse] = Field(default_factory=list)
