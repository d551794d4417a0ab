"""Data factories shared by the analytics tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from healthvaults.analytics.intake import CALORIE_WINDOW, IntakeAnalytics
from healthvaults.analytics.maintenance import MaintenanceEstimator
from healthvaults.analytics.models import ConfidenceWindow

# Fixed reference Wednesday used wherever a stable "today" is needed
REFERENCE_WEDNESDAY = date(2024, 1, 3)


def days_ago(days: int, reference: date = REFERENCE_WEDNESDAY) -> date:
    """Day ``days`` before the reference date."""
    return reference - timedelta(days=days)


def constant_series(
    value: float, days: int, reference: date = REFERENCE_WEDNESDAY, offset: int = 0
) -> dict[date, float]:
    """``days`` consecutive daily values, newest at ``offset`` days ago."""
    return {days_ago(n + offset, reference): value for n in range(days)}


def sparse_series(
    value: float, total_days_back: int, stride: int, reference: date = REFERENCE_WEDNESDAY
) -> dict[date, float]:
    """A value every ``stride`` days over ``total_days_back`` days."""
    return {days_ago(n, reference): value for n in range(0, total_days_back, stride)}


def linear_weight_trend(
    latest_weight: float,
    slope_per_week: float,
    days: int,
    reference: date = REFERENCE_WEDNESDAY,
) -> dict[date, float]:
    """Weights changing at exactly ``slope_per_week`` kg/week, newest today."""
    return {
        days_ago(n, reference): latest_weight - (slope_per_week / 7.0) * n
        for n in range(days)
    }


def intake_analytics(
    intake: float,
    days: int,
    window: ConfidenceWindow = CALORIE_WINDOW,
    reference: date = REFERENCE_WEDNESDAY,
    current: Optional[float] = None,
) -> IntakeAnalytics:
    """Analytics over constant daily intake."""
    current_intakes = {reference: current} if current is not None else {}
    return IntakeAnalytics(
        current_intakes=current_intakes,
        intakes=constant_series(intake, days, reference),
        alpha=0.25,
        window=window,
        reference_date=reference,
    )


def empty_intake(reference: date = REFERENCE_WEDNESDAY) -> IntakeAnalytics:
    return IntakeAnalytics(reference_date=reference)


def stable_estimator(
    maintenance: float = 2200.0,
    reference: date = REFERENCE_WEDNESDAY,
    current: Optional[float] = None,
) -> MaintenanceEstimator:
    """Estimator fed constant weight and constant intake at ``maintenance``."""
    return MaintenanceEstimator(
        calories=intake_analytics(maintenance, 28, reference=reference, current=current),
        weights=constant_series(70.0, 28, reference),
        fallback_maintenance=maintenance,
    )
