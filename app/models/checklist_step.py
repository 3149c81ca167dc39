"""
ChecklistStep — an ordered, checkable step owned by a goal, task, habit or
list. The owner is stored as (parent_type, parent_id) and resolved by
app.services.checklist; there is no foreign key because the parent table
varies.

`completed_at` is set when `completed` flips false -> true and cleared on
true -> false. Display order is (position, created_at, id).
"""
import enum
from datetime import datetime
from sqlalchemy import Integer, String, Boolean, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ParentType(str, enum.Enum):
    goal = "goal"
    task = "task"
    habit = "habit"
    list = "list"


class ChecklistStep(Base):
    __tablename__ = "checklist_steps"
    __table_args__ = (
        Index("ix_checklist_steps_parent", "parent_type", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    parent_type: Mapped[str] = mapped_column(String(16), nullable=False)
    parent_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
