"""
Tests for the Goal Progress Engine (pure, no DB).
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.models.goal import GoalType
from app.services.goal_progress import (
    CompletionChange,
    clamp_count,
    completion_transition,
    counted_progress,
    decrement,
    goal_progress,
    increment,
    steps_progress,
)

NOW = datetime(2026, 3, 11, 12, tzinfo=timezone.utc)


class TestCountedProgress:

    @pytest.mark.parametrize("target", [1, 3, 5, 8, 100, 7919])
    def test_zero_and_full(self, target):
        assert counted_progress(0, target) == 0
        assert counted_progress(target, target) == 100

    def test_zero_target_guard(self):
        assert counted_progress(5, 0) == 0
        assert counted_progress(5, None) == 0

    @pytest.mark.parametrize("current, target, expected", [
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),     # 12.5 rounds half-up
        (3, 5, 60),
    ])
    def test_rounding(self, current, target, expected):
        assert counted_progress(current, target) == expected

    def test_capped_at_hundred(self):
        assert counted_progress(9, 5) == 100


class TestStepsProgress:

    def test_no_steps(self):
        assert steps_progress(0, 0) == 0

    @pytest.mark.parametrize("done, total, expected", [
        (1, 4, 25),
        (4, 4, 100),
        (1, 6, 17),
        (1, 40, 3),     # 2.5 rounds half-up
    ])
    def test_ratio(self, done, total, expected):
        assert steps_progress(done, total) == expected

    def test_dispatch_on_goal_type(self):
        assert goal_progress(GoalType.counted, current_count=2, target_count=4) == 50
        assert goal_progress("named_steps", completed_steps=3, total_steps=4) == 75


class TestCounts:

    def test_increment_is_capped(self):
        assert increment(3, 3, 5) == 5

    def test_decrement_is_floored(self):
        assert decrement(1, 5) == 0
        assert decrement(4, 1) == 3

    def test_clamp(self):
        assert clamp_count(-2, 5) == 0
        assert clamp_count(7, 5) == 5
        assert clamp_count(3, 5) == 3


class TestCompletionTransition:

    def test_counted_reaching_target_completes(self):
        change = completion_transition(
            GoalType.counted, False, NOW, current_count=5, target_count=5
        )
        assert change == CompletionChange(completed=True, completed_at=NOW)

    def test_counted_already_complete_is_noop(self):
        assert completion_transition(
            GoalType.counted, True, NOW, current_count=5, target_count=5
        ) is None

    def test_counted_dropping_below_reopens(self):
        change = completion_transition(
            GoalType.counted, True, NOW, current_count=4, target_count=5
        )
        assert change == CompletionChange(completed=False, completed_at=None)

    def test_counted_below_and_open_is_noop(self):
        assert completion_transition(
            GoalType.counted, False, NOW, current_count=1, target_count=5
        ) is None

    def test_steps_all_done_completes(self):
        change = completion_transition(
            GoalType.named_steps, False, NOW, completed_steps=4, total_steps=4
        )
        assert change.completed is True

    def test_steps_one_undone_reopens(self):
        change = completion_transition(
            GoalType.named_steps, True, NOW, completed_steps=3, total_steps=4
        )
        assert change == CompletionChange(completed=False, completed_at=None)

    @pytest.mark.parametrize("completed", [True, False])
    def test_zero_steps_never_transitions(self, completed):
        assert completion_transition(
            GoalType.named_steps, completed, NOW, completed_steps=0, total_steps=0
        ) is None
