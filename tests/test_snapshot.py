"""Tests for assembling a full snapshot from raw samples."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone

import pytest

from healthvaults.analytics.maintenance import historical_maintenance
from healthvaults.analytics.models import HealthKind, MacroPercentages
from healthvaults.analytics.snapshot import build_snapshot
from healthvaults.config.settings import Settings
from healthvaults.data.sample_loader import SampleSet

from helpers import REFERENCE_WEDNESDAY


def at(days_back: int, hour: int) -> datetime:
    day = REFERENCE_WEDNESDAY - timedelta(days=days_back)
    return datetime(day.year, day.month, day.day, hour, 0)


@pytest.fixture
def samples() -> SampleSet:
    """Two months of steady data with a partial day today."""
    records = []
    for n in range(1, 60):
        records.append(("dietary_calories", at(n, 9), 800.0))
        records.append(("dietary_calories", at(n, 19), 1500.0))
        records.append(("body_mass", at(n, 7), 70.0))
        records.append(("protein", at(n, 19), 120.0))
    records.append(("body_mass", at(0, 7), 70.0))
    records.append(("dietary_calories", at(0, 9), 500.0))
    records.append(("protein", at(0, 9), 40.0))
    return SampleSet.from_records(records)


class TestBuildSnapshot:
    """End-to-end refresh over in-memory samples."""

    def test_reference_date(self, samples: SampleSet) -> None:
        snapshot = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY)
        assert snapshot.summary.reference_date == REFERENCE_WEDNESDAY
        assert snapshot.maintenance.reference_date == REFERENCE_WEDNESDAY

    def test_personal_fallback_found(self, samples: SampleSet) -> None:
        summary = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        assert summary.fallback_maintenance != 2200.0

    def test_maintenance_between_fallback_and_intake(self, samples: SampleSet) -> None:
        """Stable weight at 2300 kcal/day pulls maintenance toward 2300."""
        summary = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        assert summary.fallback_maintenance < summary.maintenance < 2300.0
        assert summary.is_valid
        assert summary.weight_slope == pytest.approx(0.0, abs=1e-6)

    def test_short_term_intake_excludes_today(self, samples: SampleSet) -> None:
        summary = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        assert summary.smoothed_intake == pytest.approx(2300.0)

    def test_week_credit(self, samples: SampleSet) -> None:
        """Monday and Tuesday are logged at 2300."""
        snapshot = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY)
        summary = snapshot.summary
        assert snapshot.budget.days_logged == 2
        assert summary.days_left == 5
        assert summary.credit == pytest.approx(summary.base_budget * 2 - 4600.0)
        assert summary.budget == pytest.approx(summary.base_budget + summary.daily_adjustment)

    def test_remaining_subtracts_today(self, samples: SampleSet) -> None:
        summary = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        assert summary.remaining == pytest.approx(summary.budget - 500.0)

    def test_adjustment(self, samples: SampleSet) -> None:
        summary = build_snapshot(
            samples, reference_date=REFERENCE_WEDNESDAY, adjustment=-400.0
        ).summary
        assert summary.base_budget == pytest.approx(summary.maintenance - 400.0)

    def test_first_weekday_override(self, samples: SampleSet) -> None:
        summary = build_snapshot(
            samples, reference_date=REFERENCE_WEDNESDAY, first_weekday=calendar.SUNDAY
        ).summary
        assert summary.days_left == 4

    def test_settings_applied(self, samples: SampleSet) -> None:
        settings = Settings.from_dict({"budget": {"max_daily_adjustment": 0}})
        summary = build_snapshot(
            samples, settings=settings, reference_date=REFERENCE_WEDNESDAY
        ).summary
        assert summary.daily_adjustment == 0.0

    def test_long_term_alpha_reaches_historical_search(self) -> None:
        records = []
        for n in range(0, 180):
            records.append(("dietary_calories", at(n, 12), 2000.0 if n % 2 else 3000.0))
            records.append(("body_mass", at(n, 7), 70.0))
        samples = SampleSet.from_records(records)
        settings = Settings.from_dict({"intake": {"long_term_alpha": 0.9}})

        summary = build_snapshot(
            samples, settings=settings, reference_date=REFERENCE_WEDNESDAY
        ).summary
        calories = samples.daily(HealthKind.DIETARY_CALORIES)
        weights = samples.daily(HealthKind.BODY_MASS)
        assert summary.fallback_maintenance == pytest.approx(
            historical_maintenance(calories, weights, REFERENCE_WEDNESDAY, long_term_alpha=0.9)
        )
        assert summary.fallback_maintenance != pytest.approx(
            historical_maintenance(calories, weights, REFERENCE_WEDNESDAY)
        )


class TestSnapshotMacros:
    def test_without_percentages(self, samples: SampleSet) -> None:
        summary = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        assert summary.protein_budget is None
        assert summary.protein_remaining is None

    def test_with_percentages(self, samples: SampleSet) -> None:
        summary = build_snapshot(
            samples,
            reference_date=REFERENCE_WEDNESDAY,
            macro_percentages=MacroPercentages(protein=30, fat=25),
        ).summary
        assert summary.protein_budget == pytest.approx(summary.base_budget * 0.30 / 4)
        assert summary.protein_remaining == pytest.approx(summary.protein_budget - 40.0)
        assert summary.fat_remaining == pytest.approx(summary.fat_budget)
        assert summary.carbs_budget is None


class TestSnapshotTimezone:
    def test_timezone_moves_late_sample_to_yesterday(self) -> None:
        """03:00 UTC on the reference day is still the evening before at UTC-5."""
        moment = datetime(2024, 1, 3, 3, 0, tzinfo=timezone.utc)
        samples = SampleSet.from_records([(HealthKind.DIETARY_CALORIES, moment, 700.0)])

        in_utc = build_snapshot(samples, reference_date=REFERENCE_WEDNESDAY).summary
        shifted = build_snapshot(
            samples,
            reference_date=REFERENCE_WEDNESDAY,
            tz=timezone(timedelta(hours=-5)),
        ).summary

        assert in_utc.remaining == pytest.approx(in_utc.budget - 700.0)
        assert shifted.remaining == pytest.approx(shifted.budget)
