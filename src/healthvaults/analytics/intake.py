"""Intake analytics: smoothing and confidence over a daily intake series.

Used for calories (28-day window, 14 points for full density) and for each
macro-nutrient (7-day window, 4 points).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from healthvaults.analytics.models import ConfidenceWindow, DailySeries, clean_series
from healthvaults.analytics.timeseries import (
    DEFAULT_ALPHA,
    MAINTENANCE_ALPHA,
    gap_aware_ewma,
    sorted_entries,
    span_days,
    window,
)

CALORIE_WINDOW = ConfidenceWindow(window_days=28, min_data_points=14)
MACRO_WINDOW = ConfidenceWindow(window_days=7, min_data_points=4)


def _check_alpha(name: str, value: float) -> None:
    if not 0 < value < 1:
        raise ValueError(f"{name} must be within (0, 1), got {value}")


@dataclass(frozen=True)
class IntakeAnalytics:
    """
    Smoothed intake statistics for one nutrient.

    Attributes:
        current_intakes: Today's intake entries (day -> total)
        intakes: Historical daily intake totals
        alpha: Short-term smoothing factor
        window: Confidence window for the historical series
        reference_date: Day treated as "today"
        long_term_alpha: Smoothing factor for the stable maintenance baseline
    """

    current_intakes: Mapping[date, float] = field(default_factory=dict)
    intakes: Mapping[date, float] = field(default_factory=dict)
    alpha: float = DEFAULT_ALPHA
    window: ConfidenceWindow = CALORIE_WINDOW
    reference_date: date = field(default_factory=date.today)
    long_term_alpha: float = MAINTENANCE_ALPHA

    def __post_init__(self) -> None:
        _check_alpha("alpha", self.alpha)
        _check_alpha("long_term_alpha", self.long_term_alpha)
        object.__setattr__(self, "current_intakes", clean_series(self.current_intakes))
        object.__setattr__(self, "intakes", clean_series(self.intakes))

    @property
    def daily_intakes(self) -> DailySeries:
        return dict(self.intakes)

    @property
    def sorted_daily_intakes(self) -> list[tuple[date, float]]:
        """Recorded days only, oldest first."""
        return sorted_entries(self.intakes)

    @property
    def window_intakes(self) -> DailySeries:
        return window(self.intakes, self.reference_date, self.window.window_days)

    @property
    def intake_date_range(self) -> Optional[tuple[date, date]]:
        if not self.intakes:
            return None
        return min(self.intakes), max(self.intakes)

    @property
    def data_point_count(self) -> int:
        """Distinct days with intake inside the window."""
        return len(self.window_intakes)

    @property
    def data_span_days(self) -> int:
        return span_days(self.window_intakes)

    @property
    def confidence(self) -> float:
        return self.window.confidence(self.data_point_count, self.data_span_days)

    @property
    def is_valid(self) -> bool:
        return self.window.is_valid(self.data_point_count, self.data_span_days)

    @property
    def smoothed_intake(self) -> Optional[float]:
        """Responsive smoothed intake for display."""
        return gap_aware_ewma(self.sorted_daily_intakes, self.alpha)

    @property
    def long_term_smoothed_intake(self) -> Optional[float]:
        """Stable smoothed intake that ignores single-day spikes."""
        return gap_aware_ewma(self.sorted_daily_intakes, self.long_term_alpha)

    @property
    def current_intake(self) -> float:
        """Total intake logged today (0 when nothing is logged)."""
        return sum(self.current_intakes.values())
