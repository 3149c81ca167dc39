"""
Habit request/response schemas.

Dates travel as ISO strings, as elsewhere in the API.
"""

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ScheduleModeLiteral = Literal["flexible", "specific_days", "interval"]


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    daily_target: int = Field(default=1, gt=0, description="Units required per day.")
    schedule_mode: ScheduleModeLiteral = "flexible"
    schedule_config: dict[str, Any] = Field(
        default_factory=dict,
        description=(
            'specific_days: {"days_of_week": [0, 2, 4]} (Monday = 0). '
            'interval: {"interval": 2, "interval_unit": "days|weeks|months", '
            '"anchor_date": "2026-01-01"}.'
        ),
    )


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    daily_target: Optional[int] = Field(default=None, gt=0)
    schedule_mode: Optional[ScheduleModeLiteral] = None
    schedule_config: Optional[dict[str, Any]] = None


class HealthStateOut(BaseModel):
    state: str = Field(description='"thriving" | "steady" | "struggling" | "critical"')
    label: str
    color: str


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    daily_target: int
    schedule_mode: str
    schedule_config: dict[str, Any]
    current_streak: int
    health: int
    health_state: HealthStateOut
    last_missed_date: Optional[str] = None
    consecutive_misses: int
    misses_this_week: int
    last_evaluated_on: Optional[str] = None
    last_health_check_at: Optional[str] = None
    today_count: int = 0
    archived: bool = False


class CompletionSet(BaseModel):
    count: int = Field(ge=0, description="0 removes the day's entry.")


class CompletionResponse(BaseModel):
    habit_id: int
    day: str
    count: int
    streak: int


class CompletionListResponse(BaseModel):
    habit_id: int
    items: list[dict[str, Any]]


class StreakResponse(BaseModel):
    habit_id: int
    as_of: str
    streak: int
    persisted: bool = Field(description="True when as_of is today and current_streak was refreshed.")


class HabitSummaryResponse(BaseModel):
    total: int
    overall_health: int
    at_risk: int
    by_state: dict[str, int]


class DailyCycleResponse(BaseModel):
    day: str
    ran: bool
    habits_evaluated: int
    steps_reset: int
