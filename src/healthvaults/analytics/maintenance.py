"""Maintenance (TDEE) estimation from intake and weight trends.

Algorithm:
    1. Weighted linear regression on in-window daily weights -> raw slope
       (kg/week), clamped to physiological bounds.
    2. Energy density ρ from the Forbes partition model when body fat is
       known, otherwise a population average.
    3. Each input blends toward its own neutral fallback by its own
       confidence:
           intake -> fallback maintenance
           slope  -> 0 (stable weight)
    4. M = blended_intake - blended_slope × ρ / 7

The fallback is either the user's own historical estimate over a wider
window (see historical_maintenance) or a fixed baseline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from healthvaults.analytics.intake import IntakeAnalytics
from healthvaults.analytics.models import (
    ConfidenceWindow,
    DailySeries,
    EnergyDensityConstants,
    WeightBounds,
    clean_series,
)
from healthvaults.analytics.timeseries import (
    DEFAULT_ALPHA,
    DEFAULT_REGRESSION_DECAY,
    MAINTENANCE_ALPHA,
    clamp,
    span_days,
    weighted_slope,
    window,
)

logger = logging.getLogger(__name__)

# Generic maintenance used when nothing personal is known (kcal/day)
BASELINE_MAINTENANCE = 2200.0

WEIGHT_WINDOW = ConfidenceWindow(window_days=28, min_data_points=7)

# Progressively wider windows (days) searched for a personal fallback
HISTORICAL_STAGES = (180, 365, 730)
MIN_HISTORICAL_WEIGHT_DAYS = 7
MIN_HISTORICAL_CALORIE_DAYS = 14


def blend(value: float, fallback: float, confidence: float) -> float:
    """Linear interpolation from ``fallback`` (confidence 0) to ``value`` (1)."""
    return value * confidence + fallback * (1 - confidence)


def forbes_energy_density(
    weight: float,
    body_fat_fraction: float,
    constants: EnergyDensityConstants = EnergyDensityConstants(),
) -> float:
    """
    Energy per kg of weight change from the Forbes partition model.

    Args:
        weight: Body weight (kg)
        body_fat_fraction: Body fat as a fraction (0-1)
        constants: Model constants

    Returns:
        ρ in kcal/kg. Strictly increases with fat mass, since a larger
        share of the change is partitioned to fat tissue.
    """
    fat_mass = weight * body_fat_fraction
    p = fat_mass / (fat_mass + constants.forbes_constant)
    return p * constants.fat_tissue_kcal + (1 - p) * constants.lean_tissue_kcal


@dataclass(frozen=True)
class MaintenanceEstimator:
    """
    Confidence-blended maintenance estimate.

    Attributes:
        calories: Intake analytics over the regression window
        weights: Daily weights (kg)
        body_fat: Daily body-fat fractions (0-1)
        window: Weight regression window and point minimum
        fallback_maintenance: Value blended toward when data is sparse
        energy_density: Forbes model constants
        weight_bounds: Clamp for the weekly weight slope
        regression_decay: Per-day retention factor for regression weights
    """

    calories: IntakeAnalytics
    weights: Mapping[date, float] = field(default_factory=dict)
    body_fat: Mapping[date, float] = field(default_factory=dict)
    window: ConfidenceWindow = WEIGHT_WINDOW
    fallback_maintenance: float = BASELINE_MAINTENANCE
    energy_density: EnergyDensityConstants = EnergyDensityConstants()
    weight_bounds: WeightBounds = WeightBounds()
    regression_decay: float = DEFAULT_REGRESSION_DECAY

    def __post_init__(self) -> None:
        if not 0 < self.regression_decay <= 1:
            raise ValueError(
                f"regression_decay must be within (0, 1], got {self.regression_decay}"
            )
        object.__setattr__(self, "weights", clean_series(self.weights))
        object.__setattr__(self, "body_fat", clean_series(self.body_fat))

    @property
    def reference_date(self) -> date:
        return self.calories.reference_date

    # ------------------------------------------------------------------
    # Data views
    # ------------------------------------------------------------------

    @property
    def daily_weights(self) -> DailySeries:
        return dict(self.weights)

    @property
    def window_weights(self) -> DailySeries:
        return window(self.weights, self.reference_date, self.window.window_days)

    @property
    def window_body_fat(self) -> DailySeries:
        return window(self.body_fat, self.reference_date, self.window.window_days)

    @property
    def weight_date_range(self) -> Optional[tuple[date, date]]:
        weights = self.window_weights
        if not weights:
            return None
        return min(weights), max(weights)

    @property
    def data_point_count(self) -> int:
        return len(self.window_weights)

    @property
    def body_fat_data_point_count(self) -> int:
        return len(self.window_body_fat)

    @property
    def data_span_days(self) -> int:
        return span_days(self.window_weights)

    @property
    def latest_weight(self) -> Optional[float]:
        if not self.weights:
            return None
        return self.weights[max(self.weights)]

    @property
    def body_fat_percentage_used(self) -> Optional[float]:
        """Latest in-window body fat, else the latest value on record."""
        for series in (self.window_body_fat, self.body_fat):
            if series:
                return series[max(series)]
        return None

    # ------------------------------------------------------------------
    # Weight trend
    # ------------------------------------------------------------------

    @property
    def confidence(self) -> float:
        """Weight data confidence (0-1)."""
        return self.window.confidence(self.data_point_count, self.data_span_days)

    @property
    def raw_weight_slope(self) -> float:
        """Unclamped regression slope (kg/week)."""
        slope = weighted_slope(self.window_weights, self.reference_date, self.regression_decay)
        return slope * 7

    @property
    def weight_slope(self) -> float:
        """Slope clamped to physiological bounds (kg/week)."""
        bounds = self.weight_bounds
        return clamp(
            self.raw_weight_slope, -bounds.max_loss_per_week, bounds.max_gain_per_week
        )

    @property
    def rho(self) -> float:
        """Energy per kg of weight change (kcal/kg)."""
        body_fat = self.body_fat_percentage_used
        weight = self.latest_weight
        if body_fat is None or weight is None:
            return self.energy_density.default_rho
        return forbes_energy_density(weight, body_fat, self.energy_density)

    # ------------------------------------------------------------------
    # Blending
    # ------------------------------------------------------------------

    @property
    def blended_intake(self) -> float:
        smoothed = self.calories.long_term_smoothed_intake
        if smoothed is None:
            return self.fallback_maintenance
        return blend(smoothed, self.fallback_maintenance, self.calories.confidence)

    @property
    def blended_slope(self) -> float:
        return blend(self.weight_slope, 0.0, self.confidence)

    @property
    def raw_maintenance(self) -> float:
        """Unblended estimate, for diagnostics."""
        smoothed = self.calories.long_term_smoothed_intake
        if smoothed is None:
            return self.fallback_maintenance
        return smoothed - self.weight_slope * self.rho / 7.0

    @property
    def maintenance(self) -> float:
        """Maintenance estimate (kcal/day)."""
        return self.blended_intake - self.blended_slope * self.rho / 7.0

    @property
    def is_valid(self) -> bool:
        """Valid when either the weight or the calorie data is sufficient."""
        has_weight_data = self.window.is_valid(self.data_point_count, self.data_span_days)
        return has_weight_data or self.calories.is_valid


@dataclass(frozen=True)
class HistoricalSearch:
    """Settings for the personal fallback search over wider windows."""

    stages: tuple[int, ...] = HISTORICAL_STAGES
    min_weight_days: int = MIN_HISTORICAL_WEIGHT_DAYS
    min_calorie_days: int = MIN_HISTORICAL_CALORIE_DAYS
    baseline: float = BASELINE_MAINTENANCE

    def __post_init__(self) -> None:
        if not self.stages or any(stage <= 0 for stage in self.stages):
            raise ValueError(f"stages must be positive day counts, got {self.stages}")
        if self.min_weight_days <= 0 or self.min_calorie_days <= 0:
            raise ValueError("Historical minimums must be positive")


def historical_maintenance(
    calories: Mapping[date, float],
    weights: Mapping[date, float],
    reference_date: date,
    body_fat: Optional[Mapping[date, float]] = None,
    fallback_body_fat: Optional[Mapping[date, float]] = None,
    search: HistoricalSearch = HistoricalSearch(),
    intake_alpha: float = DEFAULT_ALPHA,
    long_term_alpha: float = MAINTENANCE_ALPHA,
    regression_decay: float = DEFAULT_REGRESSION_DECAY,
    energy_density: EnergyDensityConstants = EnergyDensityConstants(),
    weight_bounds: WeightBounds = WeightBounds(),
) -> float:
    """
    Personal maintenance estimate from the narrowest sufficient history.

    Stages are tried in order; the first with enough weight days AND
    calorie days builds a nested estimator over that stage and returns its
    maintenance. Never fails: without qualifying history the baseline is
    returned.

    Args:
        calories: Daily intake covering at least the widest stage
        weights: Daily weights covering at least the widest stage
        reference_date: Last day of every stage
        body_fat: Daily body-fat fractions covering the widest stage
        fallback_body_fat: Used when a stage has no body-fat entries
        search: Stage list, minimums and baseline
        intake_alpha: Short-term smoothing for the nested intake analytics
        long_term_alpha: Smoothing of the intake the nested estimator blends

    Returns:
        Maintenance in kcal/day
    """
    calories = clean_series(calories)
    weights = clean_series(weights)
    body_fat = clean_series(body_fat)

    for stage in search.stages:
        stage_calories = window(calories, reference_date, stage)
        stage_weights = window(weights, reference_date, stage)
        calorie_days = len(stage_calories)
        weight_days = len(stage_weights)

        if weight_days < search.min_weight_days or calorie_days < search.min_calorie_days:
            logger.debug(
                "Historical stage %dd: %d weight, %d calorie days (insufficient)",
                stage,
                weight_days,
                calorie_days,
            )
            continue

        stage_body_fat = window(body_fat, reference_date, stage) or clean_series(
            fallback_body_fat
        )
        estimator = MaintenanceEstimator(
            calories=IntakeAnalytics(
                intakes=stage_calories,
                alpha=intake_alpha,
                window=ConfidenceWindow(stage, search.min_calorie_days),
                reference_date=reference_date,
                long_term_alpha=long_term_alpha,
            ),
            weights=stage_weights,
            body_fat=stage_body_fat,
            window=ConfidenceWindow(stage, search.min_weight_days),
            fallback_maintenance=search.baseline,
            energy_density=energy_density,
            weight_bounds=weight_bounds,
            regression_decay=regression_decay,
        )
        logger.info(
            "Historical maintenance from %dd window: %.0f kcal/day "
            "(conf: %.2f, %dw %dc days)",
            stage,
            estimator.maintenance,
            estimator.confidence,
            weight_days,
            calorie_days,
        )
        return estimator.maintenance

    logger.info(
        "No sufficient historical data found, using baseline: %.0f kcal/day",
        search.baseline,
    )
    return search.baseline
