"""Value types shared by the analytics engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Optional

# A calendar day mapped to one aggregated value
DailySeries = dict[date, float]


class Aggregation(Enum):
    """How samples falling on the same day are combined."""

    SUM = "sum"  # cumulative quantities (intake)
    MEAN = "mean"  # discrete quantities (weight, body fat)


class HealthKind(Enum):
    """Health record categories consumed by the engine."""

    DIETARY_CALORIES = "dietary_calories"
    BODY_MASS = "body_mass"
    BODY_FAT_PERCENTAGE = "body_fat_percentage"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"

    @property
    def aggregation(self) -> Aggregation:
        return KIND_AGGREGATIONS[self]

    @classmethod
    def parse(cls, text: str) -> "HealthKind":
        """Parse a kind name such as ``"body_mass"`` or ``"BODY_MASS"``."""
        key = text.strip().lower()
        for kind in cls:
            if kind.value == key:
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Unknown health kind '{text}', expected one of {valid}")


KIND_AGGREGATIONS = {
    HealthKind.DIETARY_CALORIES: Aggregation.SUM,
    HealthKind.BODY_MASS: Aggregation.MEAN,
    HealthKind.BODY_FAT_PERCENTAGE: Aggregation.MEAN,
    HealthKind.PROTEIN: Aggregation.SUM,
    HealthKind.CARBS: Aggregation.SUM,
    HealthKind.FAT: Aggregation.SUM,
}

MACRO_KINDS = (HealthKind.PROTEIN, HealthKind.CARBS, HealthKind.FAT)

# Energy content of each macro-nutrient (kcal per gram)
CALORIES_PER_GRAM = {
    HealthKind.PROTEIN: 4.0,
    HealthKind.CARBS: 4.0,
    HealthKind.FAT: 9.0,
}


@dataclass(frozen=True)
class DatedSample:
    """A single time-stamped measurement."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class ConfidenceWindow:
    """Trailing window used to score how much a series can be trusted.

    Attributes:
        window_days: Number of trailing calendar days considered
        min_data_points: Daily entries needed for full density credit
    """

    window_days: int
    min_data_points: int

    def __post_init__(self) -> None:
        if self.window_days <= 0:
            raise ValueError(f"window_days must be positive, got {self.window_days}")
        if self.min_data_points <= 0:
            raise ValueError(
                f"min_data_points must be positive, got {self.min_data_points}"
            )

    def confidence(self, points: int, span_days: float) -> float:
        """Score data quality in [0, 1].

        Density (points / min_data_points) and span (span_days / window_days)
        are each capped at 1 before multiplying, so sparse-but-wide and
        dense-but-narrow data are both penalized.
        """
        density = min(1.0, points / self.min_data_points)
        span = min(1.0, span_days / self.window_days)
        return density * span

    def is_valid(self, points: int, span_days: float) -> bool:
        """True when the point minimum is met and data covers half the window."""
        return points >= self.min_data_points and span_days >= self.window_days * 0.5


@dataclass(frozen=True)
class EnergyDensityConstants:
    """Constants of the Forbes partition model (kcal per kg)."""

    forbes_constant: float = 10.4
    fat_tissue_kcal: float = 9440.0
    lean_tissue_kcal: float = 1816.0
    default_rho: float = 7350.0  # population average, ~34% body fat

    def __post_init__(self) -> None:
        for name in ("forbes_constant", "fat_tissue_kcal", "lean_tissue_kcal", "default_rho"):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class WeightBounds:
    """Physiological limits on the weekly weight-change rate (kg/week)."""

    max_loss_per_week: float = 1.0
    max_gain_per_week: float = 0.5

    def __post_init__(self) -> None:
        if self.max_loss_per_week < 0 or self.max_gain_per_week < 0:
            raise ValueError("Weight-change bounds must be non-negative")


@dataclass(frozen=True)
class MacroPercentages:
    """User-set share of the calorie budget per macro-nutrient (0-100)."""

    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("protein", "carbs", "fat"):
            value = getattr(self, name)
            if value is not None and not 0 <= value <= 100:
                raise ValueError(f"{name} percentage must be within 0-100, got {value}")

    def for_kind(self, kind: HealthKind) -> Optional[float]:
        if kind is HealthKind.PROTEIN:
            return self.protein
        if kind is HealthKind.CARBS:
            return self.carbs
        if kind is HealthKind.FAT:
            return self.fat
        raise ValueError(f"{kind.value} is not a macro-nutrient")


@dataclass(frozen=True)
class Macros:
    """Per-macro values in grams."""

    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


def clean_series(series: Optional[Mapping[date, float]]) -> DailySeries:
    """Copy a daily series, dropping NaN entries."""
    if not series:
        return {}
    return {
        day: float(value)
        for day, value in series.items()
        if value is not None and not math.isnan(value)
    }
