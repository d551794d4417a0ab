"""Tests for the weekly budget and calorie credit."""

from __future__ import annotations

import calendar
from datetime import date

import pytest

from healthvaults.analytics.budget import MAX_DAILY_ADJUSTMENT, BudgetEngine
from healthvaults.analytics.maintenance import MaintenanceEstimator

from helpers import intake_analytics, stable_estimator

WEDNESDAY = date(2024, 1, 3)
FRIDAY = date(2024, 1, 5)
SUNDAY = date(2024, 1, 7)
MONDAY = date(2024, 1, 8)


def week_days(reference: date) -> list[date]:
    """Days of the Monday-based cycle before ``reference``."""
    start = date(2024, 1, 1)
    return [date(2024, 1, d) for d in range(start.day, reference.day)]


class TestBaseBudget:
    """Base budget is maintenance plus the user adjustment."""

    def test_no_adjustment(self) -> None:
        estimator = stable_estimator()
        engine = BudgetEngine(maintenance=estimator)
        assert engine.base_budget == estimator.maintenance

    def test_deficit(self) -> None:
        estimator = stable_estimator()
        engine = BudgetEngine(maintenance=estimator, adjustment=-500.0)
        assert engine.base_budget == pytest.approx(estimator.maintenance - 500.0)

    def test_surplus(self) -> None:
        estimator = stable_estimator()
        engine = BudgetEngine(maintenance=estimator, adjustment=300.0)
        assert engine.base_budget == pytest.approx(estimator.maintenance + 300.0)

    def test_empty_data_uses_fallback(self, empty_estimator: MaintenanceEstimator) -> None:
        engine = BudgetEngine(maintenance=empty_estimator)
        assert engine.base_budget == 2200.0
        assert engine.credit == 0.0
        assert engine.budget == 2200.0


class TestCycle:
    """Cycle boundaries from the configured first weekday."""

    def test_midweek(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator())
        assert engine.cycle_start == date(2024, 1, 1)
        assert engine.days_elapsed == 2
        assert engine.days_left == 5

    def test_first_day_of_cycle(self) -> None:
        engine = BudgetEngine(
            maintenance=stable_estimator(reference=MONDAY),
            week_intakes={date(2024, 1, 7): 1500.0},
        )
        assert engine.cycle_start == MONDAY
        assert engine.days_elapsed == 0
        assert engine.days_left == 7
        assert engine.credit == 0.0

    def test_last_day_of_cycle(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator(reference=SUNDAY))
        assert engine.days_elapsed == 6
        assert engine.days_left == 1

    def test_sunday_start(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator(), first_weekday=calendar.SUNDAY)
        assert engine.cycle_start == date(2023, 12, 31)
        assert engine.days_left == 4

    def test_reference_date_override(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator(), reference_date=FRIDAY)
        assert engine.days_elapsed == 4
        assert engine.days_left == 3

    def test_invalid_weekday(self) -> None:
        with pytest.raises(ValueError, match="first_weekday"):
            BudgetEngine(maintenance=stable_estimator(), first_weekday=7)

    def test_negative_cap_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_daily_adjustment"):
            BudgetEngine(maintenance=stable_estimator(), max_daily_adjustment=-1.0)


class TestCredit:
    """Credit accumulates only over logged days."""

    def test_no_logged_days(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator())
        assert engine.days_logged == 0
        assert engine.credit == 0.0
        assert engine.daily_adjustment == 0.0

    def test_eating_at_budget_is_neutral(self) -> None:
        estimator = stable_estimator()
        base = BudgetEngine(maintenance=estimator).base_budget
        intakes = {day: base for day in week_days(WEDNESDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.days_logged == 2
        assert engine.credit == pytest.approx(0.0, abs=1e-6)
        assert engine.budget == pytest.approx(engine.base_budget)

    def test_linear_in_underage(self) -> None:
        """Four days 500 under budget bank 2000."""
        estimator = stable_estimator(reference=FRIDAY)
        base = estimator.maintenance
        intakes = {day: base - 500.0 for day in week_days(FRIDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.days_logged == 4
        assert engine.credit == pytest.approx(2000.0)

    def test_unlogged_days_ignored(self) -> None:
        """Only Monday and Wednesday are logged out of four elapsed days."""
        estimator = stable_estimator(reference=FRIDAY)
        intakes = {date(2024, 1, 1): 0.0, date(2024, 1, 3): 0.0}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.days_logged == 2
        assert engine.credit == engine.base_budget * 2

    def test_days_outside_cycle_ignored(self) -> None:
        estimator = stable_estimator()
        intakes = {
            date(2023, 12, 31): 0.0,  # previous cycle
            WEDNESDAY: 0.0,  # today
            date(2024, 1, 1): estimator.maintenance,
        }
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.days_logged == 1
        assert engine.credit == pytest.approx(0.0, abs=1e-6)

    def test_debt_is_negative(self) -> None:
        estimator = stable_estimator()
        intakes = {day: estimator.maintenance + 250.0 for day in week_days(WEDNESDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.credit == pytest.approx(-500.0)
        assert engine.daily_adjustment == pytest.approx(-100.0)

    def test_adjustment_moves_reference(self) -> None:
        """Credit is measured against the adjusted base budget."""
        estimator = stable_estimator()
        intakes = {day: estimator.maintenance for day in week_days(WEDNESDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes, adjustment=-500.0)
        assert engine.credit == pytest.approx(-1000.0)


class TestDailyAdjustment:
    """Credit spread over the remaining days, capped per day."""

    def test_spread_over_days_left(self) -> None:
        estimator = stable_estimator()
        intakes = {day: estimator.maintenance - 200.0 for day in week_days(WEDNESDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.daily_adjustment == pytest.approx(400.0 / 5)

    def test_large_credit_clamped(self) -> None:
        estimator = stable_estimator(reference=SUNDAY)
        intakes = {day: 0.0 for day in week_days(SUNDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.days_logged == 6
        assert engine.daily_adjustment == MAX_DAILY_ADJUSTMENT

    def test_large_debt_clamped(self) -> None:
        estimator = stable_estimator(reference=SUNDAY)
        intakes = {day: estimator.maintenance + 3000.0 for day in week_days(SUNDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes)
        assert engine.daily_adjustment == -MAX_DAILY_ADJUSTMENT

    def test_custom_cap(self) -> None:
        estimator = stable_estimator(reference=SUNDAY)
        intakes = {day: 0.0 for day in week_days(SUNDAY)}
        engine = BudgetEngine(
            maintenance=estimator, week_intakes=intakes, max_daily_adjustment=250.0
        )
        assert engine.daily_adjustment == 250.0

    def test_budget_formula(self) -> None:
        estimator = stable_estimator(reference=FRIDAY)
        intakes = {day: 1700.0 for day in week_days(FRIDAY)}
        engine = BudgetEngine(maintenance=estimator, week_intakes=intakes, adjustment=-250.0)
        assert engine.budget == engine.base_budget + engine.daily_adjustment


class TestRemaining:
    def test_remaining_subtracts_today(self) -> None:
        estimator = stable_estimator(current=850.0)
        engine = BudgetEngine(maintenance=estimator)
        assert engine.remaining == pytest.approx(engine.budget - 850.0)

    def test_separate_calorie_analytics(self) -> None:
        """Today's intake comes from the supplied analytics when given."""
        engine = BudgetEngine(
            maintenance=stable_estimator(current=850.0),
            calories=intake_analytics(2000.0, 7, current=400.0),
        )
        assert engine.remaining == pytest.approx(engine.budget - 400.0)

    def test_nothing_eaten_today(self) -> None:
        engine = BudgetEngine(maintenance=stable_estimator())
        assert engine.remaining == engine.budget


class TestDelegation:
    def test_confidence_and_validity(self) -> None:
        estimator = stable_estimator()
        engine = BudgetEngine(maintenance=estimator)
        assert engine.confidence == estimator.confidence
        assert engine.is_valid == estimator.is_valid
