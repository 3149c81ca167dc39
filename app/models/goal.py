"""
Goal — tracked either by a running count against a target ("counted") or by
the share of its checklist steps that are complete ("named_steps").

`completed` / `completed_at` are never set directly: every save path goes
through app.services.goals.refresh_completion.
"""
import enum
from datetime import datetime
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class GoalType(str, enum.Enum):
    counted = "counted"
    named_steps = "named_steps"


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    goal_type: Mapped[GoalType] = mapped_column(
        Enum(GoalType, name="goal_type_enum"),
        nullable=False,
        default=GoalType.counted,
        index=True,
    )
    target_count: Mapped[int | None] = mapped_column(Integer, nullable=True, default=1)
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
