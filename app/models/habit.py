"""
Habit — a trackable item with a daily numeric target.

Derived fields (`current_streak`, `health`, the miss counters) are cached
here and written only by the streak and vitality services. Deleting a habit
is not part of the engine; `archived_at` hides it from the daily cycle.

schedule_mode values (see app/services/schedule.py):
  "flexible"       — due every day, met when count >= daily_target
  "specific_days"  — due on schedule_config["days_of_week"] (Monday = 0)
  "interval"       — due every N days / weeks / months from an anchor date
"""
import enum
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, JSON, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ScheduleMode(str, enum.Enum):
    flexible = "flexible"
    specific_days = "specific_days"
    interval = "interval"


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (
        CheckConstraint("daily_target > 0", name="ck_habit_daily_target_positive"),
        CheckConstraint("health >= 0 AND health <= 100", name="ck_habit_health_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    daily_target: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    schedule_mode: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ScheduleMode.flexible.value
    )
    schedule_config: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # --- derived, cached ---
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    health: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    last_missed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    consecutive_misses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    misses_this_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_evaluated_on: Mapped[date | None] = mapped_column(
        Date, nullable=True,
        comment="Local day of the last vitality evaluation (idempotency key)",
    )
    last_health_check_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="Advisory only; never read by the engine",
    )

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
