"""Weekly calorie budget with rolling credit.

    B  = M + A                          (base budget)
    C  = B × d - Σ logged intake        (credit; d = logged days this cycle)
    Δ  = clamp(C / D, ±cap)             (D = days left in cycle, incl. today)
    B' = B + Δ                          (today's budget)
    R  = B' - today's intake            (remaining)

Positive credit means calories were banked by eating under budget, negative
means debt. Only days with recorded intake count toward d; unlogged days
are never assumed to be zero or average.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Mapping, Optional

from healthvaults.analytics.intake import IntakeAnalytics
from healthvaults.analytics.maintenance import MaintenanceEstimator
from healthvaults.analytics.models import DailySeries, clean_series
from healthvaults.analytics.timeseries import (
    between,
    clamp,
    day_distance,
    next_weekday,
    previous_weekday,
)

# Largest credit repayment applied to a single day (kcal/day)
MAX_DAILY_ADJUSTMENT = 500.0


@dataclass(frozen=True)
class BudgetEngine:
    """
    Weekly budget, credit, and today's adjusted target.

    Attributes:
        maintenance: Maintenance estimator for the base budget
        week_intakes: Recorded daily intake since the cycle start
        calories: Intake analytics supplying today's intake
                  (defaults to the estimator's)
        adjustment: User deficit (negative) or surplus (positive), kcal/day
        first_weekday: Weekday starting each cycle (calendar.MONDAY == 0)
        reference_date: Today (defaults to the estimator's reference date)
        max_daily_adjustment: Cap on the per-day credit repayment
    """

    maintenance: MaintenanceEstimator
    week_intakes: Mapping[date, float] = field(default_factory=dict)
    calories: Optional[IntakeAnalytics] = None
    adjustment: Optional[float] = None
    first_weekday: int = calendar.MONDAY
    reference_date: Optional[date] = None
    max_daily_adjustment: float = MAX_DAILY_ADJUSTMENT

    def __post_init__(self) -> None:
        if not 0 <= self.first_weekday <= 6:
            raise ValueError(f"first_weekday must be within 0-6, got {self.first_weekday}")
        if self.max_daily_adjustment < 0:
            raise ValueError(
                f"max_daily_adjustment must be non-negative, got {self.max_daily_adjustment}"
            )
        if self.calories is None:
            object.__setattr__(self, "calories", self.maintenance.calories)
        if self.reference_date is None:
            object.__setattr__(self, "reference_date", self.maintenance.reference_date)
        object.__setattr__(self, "week_intakes", clean_series(self.week_intakes))

    @property
    def cycle_start(self) -> date:
        return previous_weekday(self.reference_date, self.first_weekday)

    @property
    def days_elapsed(self) -> int:
        """Full days from cycle start through yesterday."""
        return day_distance(self.cycle_start, self.reference_date)

    @property
    def logged_intakes(self) -> DailySeries:
        """Recorded intake from cycle start through yesterday."""
        yesterday = self.reference_date - timedelta(days=1)
        return between(self.week_intakes, self.cycle_start, yesterday)

    @property
    def days_logged(self) -> int:
        return len(self.logged_intakes)

    @property
    def days_left(self) -> int:
        """Days remaining in the cycle, including today (at least 1)."""
        next_start = next_weekday(self.reference_date, self.first_weekday)
        return max(1, day_distance(self.reference_date, next_start))

    @property
    def base_budget(self) -> float:
        base = self.maintenance.maintenance
        if self.adjustment is not None:
            base += self.adjustment
        return base

    @property
    def credit(self) -> float:
        """Banked (positive) or owed (negative) calories this cycle."""
        logged = self.logged_intakes
        if not logged:
            return 0.0
        return self.base_budget * len(logged) - sum(logged.values())

    @property
    def daily_adjustment(self) -> float:
        cap = self.max_daily_adjustment
        return clamp(self.credit / self.days_left, -cap, cap)

    @property
    def budget(self) -> float:
        """Today's adjusted budget."""
        return self.base_budget + self.daily_adjustment

    @property
    def remaining(self) -> float:
        return self.budget - self.calories.current_intake

    @property
    def confidence(self) -> float:
        return self.maintenance.confidence

    @property
    def is_valid(self) -> bool:
        return self.maintenance.is_valid
