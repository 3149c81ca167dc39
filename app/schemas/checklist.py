from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ChecklistStepCreate(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    completed: bool = False
    position: Optional[int] = Field(default=None, description="Defaults to after the last step.")


class ChecklistStepUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    completed: Optional[bool] = None
    position: Optional[int] = None


class ChecklistReorder(BaseModel):
    step_ids: list[int] = Field(description="Every step of the parent, in the new order.")


class ChecklistStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_type: str
    parent_id: int
    name: str
    completed: bool
    completed_at: Optional[str] = None
    position: int
