"""Analytics engine: intake smoothing, maintenance estimation, and budgets.

Key components:
- Gap-aware EWMA of daily intake with confidence scoring
- Weighted weight-trend regression and Forbes energy density
- Independently blended maintenance with a historical fallback search
- Weekly calorie credit and daily macro budgets
"""

from __future__ import annotations

from healthvaults.analytics.budget import BudgetEngine
from healthvaults.analytics.intake import IntakeAnalytics
from healthvaults.analytics.macros import MacroBudgetEngine
from healthvaults.analytics.maintenance import (
    HistoricalSearch,
    MaintenanceEstimator,
    historical_maintenance,
)
from healthvaults.analytics.models import (
    ConfidenceWindow,
    DatedSample,
    EnergyDensityConstants,
    HealthKind,
    MacroPercentages,
    Macros,
    WeightBounds,
)

__all__ = [
    "BudgetEngine",
    "ConfidenceWindow",
    "DatedSample",
    "EnergyDensityConstants",
    "HealthKind",
    "HistoricalSearch",
    "IntakeAnalytics",
    "MacroBudgetEngine",
    "MacroPercentages",
    "Macros",
    "MaintenanceEstimator",
    "WeightBounds",
    "historical_maintenance",
]
