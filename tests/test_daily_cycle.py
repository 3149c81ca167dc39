"""
Tests for the once-per-day cycle.
"""
from datetime import date, timedelta

from app.models.checklist_step import ParentType
from app.services import checklist
from app.services import habits as habit_service
from app.services.checklist import ParentRef
from app.services.daily_cycle import run_daily_cycle

TODAY = date(2026, 3, 11)


class TestDailyCycle:

    def test_runs_once_per_day(self, db, user, clock):
        habit_service.create_habit(db, user, clock, name="Read")
        first = run_daily_cycle(db, user, clock)
        second = run_daily_cycle(db, user, clock)
        assert first.ran is True
        assert first.habits_evaluated == 1
        assert second.ran is False
        assert user.last_cycle_on == TODAY

    def test_runs_again_next_day(self, db, user, clock):
        run_daily_cycle(db, user, clock)
        clock.set_day(TODAY + timedelta(days=1))
        result = run_daily_cycle(db, user, clock)
        assert result.ran is True
        assert result.day == TODAY + timedelta(days=1)

    def test_force_reruns(self, db, user, clock):
        run_daily_cycle(db, user, clock)
        assert run_daily_cycle(db, user, clock, force=True).ran is True

    def test_penalizes_missed_day(self, db, user, clock):
        habit = habit_service.create_habit(db, user, clock, name="Read")
        run_daily_cycle(db, user, clock)
        clock.set_day(TODAY + timedelta(days=1))
        run_daily_cycle(db, user, clock)
        db.refresh(habit)
        assert habit.health == 90

    def test_refreshes_streak(self, db, user, clock):
        habit = habit_service.create_habit(db, user, clock, name="Read")
        habit_service.increment_today(db, habit, user, clock)
        assert habit.current_streak == 1
        clock.set_day(TODAY + timedelta(days=2))
        run_daily_cycle(db, user, clock)
        db.refresh(habit)
        assert habit.current_streak == 0

    def test_resets_habit_checklists(self, db, user, clock):
        habit = habit_service.create_habit(db, user, clock, name="Routine")
        ref = ParentRef(ParentType.habit, habit.id)
        checklist.add_step(db, user.id, ref, clock, name="stretch", completed=True)
        result = run_daily_cycle(db, user, clock)
        assert result.steps_reset == 1
        db.expire_all()
        (step,) = checklist.list_steps(db, user.id, ref)
        assert step.completed is False
        assert step.completed_at is None

    def test_keeps_ledger_history(self, db, user, clock):
        habit = habit_service.create_habit(db, user, clock, name="Read")
        habit_service.increment_today(db, habit, user, clock)
        clock.set_day(TODAY + timedelta(days=1))
        run_daily_cycle(db, user, clock)
        db.refresh(habit)
        assert habit.health == 100
        assert habit_service.recompute_streak(db, habit, user, clock, as_of=TODAY) == 1

    def test_skips_archived_habits(self, db, user, clock):
        habit = habit_service.create_habit(db, user, clock, name="Old")
        habit_service.archive_habit(db, habit, clock)
        clock.set_day(TODAY + timedelta(days=3))
        result = run_daily_cycle(db, user, clock)
        db.refresh(habit)
        assert result.habits_evaluated == 0
        assert habit.health == 100
