from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=128)
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone name; decides which calendar day is 'today'.",
        examples=["America/New_York"],
    )


class UserUpdate(BaseModel):
    timezone: str = Field(examples=["Europe/Madrid"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    timezone: str
    last_cycle_on: Optional[str] = None
