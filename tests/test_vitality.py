"""
Tests for the Vitality engine state machine (pure, no DB).

Scenarios:
  A) first miss            → -10
  B) consecutive chain     → -30, -40, then zero-out
  C) repeat weekly miss    → -20 (flat, not escalating)
  D) recovery              → +12 capped at 100, resets the miss chain
  E) idempotency           → same `today` twice changes nothing
  F) weekly reset          → misses_this_week cleared on the week's first day
  G) lazy catch-up         → identical to evaluating every day
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from app.services.vitality import (
    DailyOutcome,
    VitalityState,
    apply_outcome,
    catch_up,
    evaluate_vitality,
    health_state,
    penalty_for,
    sanitize,
)

WED = date(2026, 3, 11)
MON = date(2026, 3, 9)


def _days(start: date, n: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(n)]


class TestMisses:

    def test_first_miss_costs_ten(self):
        state = evaluate_vitality(VitalityState(), WED, met_yesterday=False)
        assert state.health == 90
        assert state.consecutive_misses == 1
        assert state.misses_this_week == 1
        assert state.last_missed_date == WED - timedelta(days=1)
        assert state.last_evaluated_on == WED

    def test_consecutive_chain(self):
        state = VitalityState()
        healths = []
        for today in _days(WED, 4):
            state = evaluate_vitality(state, today, met_yesterday=False)
            healths.append(state.health)
        assert healths == [90, 60, 20, 0]
        assert state.consecutive_misses == 4

    def test_chain_beyond_fourth_stays_at_zero(self):
        state = VitalityState()
        for today in _days(WED, 7):
            state = evaluate_vitality(state, today, met_yesterday=False, week_start=6)
        assert state.health == 0
        assert state.consecutive_misses == 7

    def test_second_non_consecutive_miss_in_week_costs_twenty(self):
        state = VitalityState(
            health=90, consecutive_misses=1, misses_this_week=1,
            last_missed_date=WED - timedelta(days=3),
        )
        state = apply_outcome(state, DailyOutcome(day=WED, met=False))
        assert state.health == 70
        assert state.consecutive_misses == 1
        assert state.misses_this_week == 2

    def test_third_non_consecutive_miss_is_still_twenty(self):
        state = VitalityState(
            health=70, consecutive_misses=1, misses_this_week=2,
            last_missed_date=WED - timedelta(days=2),
        )
        assert penalty_for(state, WED) == 20

    def test_miss_recorded_once_per_date(self):
        day = WED - timedelta(days=1)
        state = VitalityState(health=90, consecutive_misses=1, misses_this_week=1, last_missed_date=day)
        assert apply_outcome(state, DailyOutcome(day=day, met=False)) == state

    def test_health_never_negative(self):
        state = VitalityState(
            health=5, consecutive_misses=0, misses_this_week=1,
            last_missed_date=WED - timedelta(days=5),
        )
        state = apply_outcome(state, DailyOutcome(day=WED, met=False))
        assert state.health == 0


class TestPenaltyTable:

    @pytest.mark.parametrize("previous_consecutive, expected", [(1, 30), (2, 40), (3, 100), (9, 100)])
    def test_consecutive_penalties(self, previous_consecutive, expected):
        state = VitalityState(
            consecutive_misses=previous_consecutive,
            misses_this_week=previous_consecutive,
            last_missed_date=WED - timedelta(days=1),
        )
        assert penalty_for(state, WED) == expected

    def test_first_miss(self):
        assert penalty_for(VitalityState(), WED) == 10


class TestRecovery:

    def test_met_day_recovers_twelve(self):
        state = VitalityState(health=60, consecutive_misses=2, last_missed_date=WED - timedelta(days=3))
        state = apply_outcome(state, DailyOutcome(day=WED, met=True))
        assert state.health == 72
        assert state.consecutive_misses == 0
        assert state.last_missed_date is None

    def test_recovery_capped_at_hundred(self):
        state = apply_outcome(VitalityState(health=95), DailyOutcome(day=WED, met=True))
        assert state.health == 100

    def test_full_health_unchanged(self):
        state = VitalityState(health=100)
        assert apply_outcome(state, DailyOutcome(day=WED, met=True)) == state

    def test_recovery_without_prior_misses(self):
        state = apply_outcome(VitalityState(health=50), DailyOutcome(day=WED, met=True))
        assert state.health == 62

    def test_weekly_counter_survives_recovery(self):
        state = VitalityState(health=90, consecutive_misses=1, misses_this_week=1,
                              last_missed_date=WED - timedelta(days=2))
        state = apply_outcome(state, DailyOutcome(day=WED, met=True))
        assert state.misses_this_week == 1

    def test_chain_broken_by_met_day_restarts_at_weekly_penalty(self):
        state = VitalityState()
        state = evaluate_vitality(state, WED, met_yesterday=False)              # miss Tue: 90
        state = evaluate_vitality(state, WED + timedelta(days=1), True)         # met Wed: 100
        state = evaluate_vitality(state, WED + timedelta(days=2), False)        # miss Thu: 80
        assert state.health == 80
        assert state.consecutive_misses == 1
        assert state.misses_this_week == 2


class TestIdempotency:

    def test_same_today_twice_after_miss(self):
        once = evaluate_vitality(VitalityState(), WED, met_yesterday=False)
        twice = evaluate_vitality(once, WED, met_yesterday=False)
        assert twice == once

    def test_same_today_twice_after_met(self):
        once = evaluate_vitality(VitalityState(health=50), WED, met_yesterday=True)
        twice = evaluate_vitality(once, WED, met_yesterday=True)
        assert twice == once
        assert twice.health == 62

    def test_earlier_today_is_ignored(self):
        state = evaluate_vitality(VitalityState(), WED, met_yesterday=False)
        assert evaluate_vitality(state, WED - timedelta(days=3), met_yesterday=False) == state


class TestWeeklyReset:

    def test_reset_on_monday(self):
        state = VitalityState(health=90, consecutive_misses=1, misses_this_week=1,
                              last_missed_date=MON - timedelta(days=4))
        state = evaluate_vitality(state, MON, met_yesterday=False)
        # Sunday's miss is judged first (second miss of last week: -20)
        assert state.health == 70
        assert state.misses_this_week == 0

    def test_no_reset_midweek(self):
        state = VitalityState(misses_this_week=2, last_missed_date=WED - timedelta(days=4))
        state = evaluate_vitality(state, WED, met_yesterday=True)
        assert state.misses_this_week == 2

    def test_custom_week_start(self):
        sunday = MON - timedelta(days=1)
        state = VitalityState(misses_this_week=2, last_missed_date=sunday - timedelta(days=3))
        state = evaluate_vitality(state, sunday, met_yesterday=True, week_start=6)
        assert state.misses_this_week == 0

    def test_reset_lets_next_miss_be_a_first_miss(self):
        state = VitalityState(health=80, misses_this_week=2, last_missed_date=MON - timedelta(days=5))
        state = evaluate_vitality(state, MON, met_yesterday=True)
        state = evaluate_vitality(state, MON + timedelta(days=2), met_yesterday=False)
        assert state.health == 82  # 80 + 12 then -10


class TestRestDays:

    def test_not_due_changes_nothing_but_the_key(self):
        before = VitalityState(health=70, consecutive_misses=1, misses_this_week=1,
                               last_missed_date=WED - timedelta(days=3))
        after = evaluate_vitality(before, WED, met_yesterday=False, due_yesterday=False)
        assert after.health == 70
        assert after.last_missed_date == before.last_missed_date
        assert after.last_evaluated_on == WED


class TestBoundsAndSanitizing:

    def test_health_stays_in_range_over_any_history(self):
        pattern = [False, False, True, False, True, True, False, False, False, False,
                   True, True, True, True, True, True, True, True, True, False]
        state = VitalityState()
        for i, met in enumerate(pattern):
            state = evaluate_vitality(state, WED + timedelta(days=i), met_yesterday=met)
            assert 0 <= state.health <= 100

    def test_out_of_range_values_are_clamped_with_warning(self, caplog):
        bad = VitalityState(health=130, consecutive_misses=-1, misses_this_week=-3)
        with caplog.at_level(logging.WARNING, logger="app.services.vitality"):
            fixed = sanitize(bad)
        assert fixed.health == 100
        assert fixed.consecutive_misses == 0
        assert fixed.misses_this_week == 0
        assert "Clamped" in caplog.text

    def test_evaluate_never_raises_on_bad_state(self):
        state = evaluate_vitality(VitalityState(health=-40), WED, met_yesterday=True)
        assert state.health == 12


class TestCatchUp:

    def test_catch_up_matches_daily_evaluation(self):
        start = VitalityState(health=80, last_evaluated_on=MON - timedelta(days=1))
        met_days = {MON + timedelta(days=i) for i in (0, 1, 5, 6, 7, 12, 13)}
        met_on = lambda day: day in met_days
        today = MON + timedelta(days=16)

        daily = start
        day = MON
        while day <= today:
            daily = evaluate_vitality(daily, day, met_on(day - timedelta(days=1)))
            day += timedelta(days=1)

        lazy = catch_up(start, today, met_on)
        assert lazy == daily

    def test_never_evaluated_runs_today_only(self):
        state = catch_up(VitalityState(), WED, met_on=lambda d: False)
        assert state.health == 90
        assert state.misses_this_week == 1

    def test_up_to_date_is_noop(self):
        state = VitalityState(health=40, last_evaluated_on=WED)
        assert catch_up(state, WED, met_on=lambda d: False) is state

    def test_long_gap_is_truncated(self):
        state = VitalityState(health=100, last_evaluated_on=WED - timedelta(days=400))
        evaluated = []

        def met_on(day):
            evaluated.append(day)
            return True

        catch_up(state, WED, met_on, max_days=5)
        assert len(evaluated) == 5
        assert evaluated[-1] == WED - timedelta(days=1)

    def test_catch_up_respects_schedule(self):
        # Due only on Mondays; nothing is ever logged.
        start = VitalityState(last_evaluated_on=MON - timedelta(days=1))
        state = catch_up(
            start, MON + timedelta(days=7),
            met_on=lambda d: False,
            due_on=lambda d: d.weekday() == 0,
        )
        assert state.last_missed_date == MON
        assert state.health == 90


class TestHealthState:

    @pytest.mark.parametrize("health, expected", [
        (100, "thriving"), (80, "thriving"),
        (79, "steady"), (50, "steady"),
        (49, "struggling"), (25, "struggling"),
        (24, "critical"), (0, "critical"),
    ])
    def test_buckets(self, health, expected):
        assert health_state(health).state == expected
