"""Assemble one immutable analytics snapshot from raw samples.

A refresh slices the daily series into the ranges each engine expects:

    today                       -> current intake
    7 days ending yesterday     -> short-term intake (budget, macros)
    window ending yesterday     -> maintenance intake fit
    window through today        -> weights and body fat
    cycle start to yesterday    -> logged week-to-date intake
    widest stage through today  -> historical fallback search
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo
from typing import Optional

from healthvaults.analytics.budget import BudgetEngine
from healthvaults.analytics.intake import IntakeAnalytics
from healthvaults.analytics.macros import MacroBudgetEngine
from healthvaults.analytics.maintenance import MaintenanceEstimator, historical_maintenance
from healthvaults.analytics.models import HealthKind, MacroPercentages
from healthvaults.analytics.timeseries import between, date_range, previous_weekday
from healthvaults.config.settings import Settings
from healthvaults.data.sample_loader import SampleSet

logger = logging.getLogger(__name__)

# Short-term intake window ending yesterday (days)
SHORT_TERM_DAYS = 7


@dataclass(frozen=True)
class BudgetSnapshot:
    """Flat output values of one refresh, suitable for caching."""

    reference_date: date
    confidence: float
    is_valid: bool
    smoothed_intake: Optional[float]
    raw_weight_slope: float
    weight_slope: float
    rho: float
    maintenance: float
    fallback_maintenance: float
    base_budget: float
    credit: float
    daily_adjustment: float
    budget: float
    remaining: float
    days_left: int
    protein_budget: Optional[float] = None
    carbs_budget: Optional[float] = None
    fat_budget: Optional[float] = None
    protein_remaining: Optional[float] = None
    carbs_remaining: Optional[float] = None
    fat_remaining: Optional[float] = None


@dataclass(frozen=True)
class Snapshot:
    """Engines built for one refresh plus their summarized outputs."""

    maintenance: MaintenanceEstimator
    budget: BudgetEngine
    macros: MacroBudgetEngine
    summary: BudgetSnapshot


def _macro_analytics(
    samples: SampleSet,
    kind: HealthKind,
    settings: Settings,
    reference_date: date,
    tz: Optional[tzinfo],
) -> IntakeAnalytics:
    daily = samples.daily(kind, tz)
    yesterday = reference_date - timedelta(days=1)
    start, end = date_range(yesterday, settings.macros.window_days)
    return IntakeAnalytics(
        current_intakes=between(daily, reference_date, reference_date),
        intakes=between(daily, start, end),
        alpha=settings.macros.alpha,
        window=settings.macros.confidence_window(),
        reference_date=reference_date,
    )


def summarize(budget: BudgetEngine, macros: MacroBudgetEngine) -> BudgetSnapshot:
    """Collect the output values of a budget and its macros."""
    estimator = budget.maintenance
    macro_budgets = macros.budgets
    macro_remaining = macros.remaining
    return BudgetSnapshot(
        reference_date=budget.reference_date,
        confidence=estimator.confidence,
        is_valid=estimator.is_valid,
        smoothed_intake=budget.calories.smoothed_intake,
        raw_weight_slope=estimator.raw_weight_slope,
        weight_slope=estimator.weight_slope,
        rho=estimator.rho,
        maintenance=estimator.maintenance,
        fallback_maintenance=estimator.fallback_maintenance,
        base_budget=budget.base_budget,
        credit=budget.credit,
        daily_adjustment=budget.daily_adjustment,
        budget=budget.budget,
        remaining=budget.remaining,
        days_left=budget.days_left,
        protein_budget=macro_budgets.protein if macro_budgets else None,
        carbs_budget=macro_budgets.carbs if macro_budgets else None,
        fat_budget=macro_budgets.fat if macro_budgets else None,
        protein_remaining=macro_remaining.protein if macro_remaining else None,
        carbs_remaining=macro_remaining.carbs if macro_remaining else None,
        fat_remaining=macro_remaining.fat if macro_remaining else None,
    )


def build_snapshot(
    samples: SampleSet,
    settings: Optional[Settings] = None,
    reference_date: Optional[date] = None,
    adjustment: Optional[float] = None,
    macro_percentages: Optional[MacroPercentages] = None,
    first_weekday: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> Snapshot:
    """
    Run one refresh cycle over in-memory samples.

    Args:
        samples: Raw samples for every kind
        settings: Analytics settings (defaults when None)
        reference_date: Day treated as today (defaults to today)
        adjustment: User calorie adjustment (kcal/day)
        macro_percentages: User macro split, if any
        first_weekday: Cycle start override (calendar.MONDAY == 0)
        tz: Timezone deciding which day each sample belongs to

    Returns:
        Snapshot with the estimator, budget and macro engines
    """
    settings = settings or Settings()
    today = reference_date or date.today()
    yesterday = today - timedelta(days=1)
    if first_weekday is None:
        first_weekday = settings.budget.first_weekday_number

    calories = samples.daily(HealthKind.DIETARY_CALORIES, tz)
    weights = samples.daily(HealthKind.BODY_MASS, tz)
    body_fat = samples.daily(HealthKind.BODY_FAT_PERCENTAGE, tz)

    window_days = settings.maintenance.window_days
    fit_start, fit_end = date_range(yesterday, window_days)
    short_start, short_end = date_range(yesterday, SHORT_TERM_DAYS)
    current = between(calories, today, today)
    primary_weights = between(weights, fit_start, today)
    primary_body_fat = between(body_fat, fit_start, today)

    maintenance_cfg = settings.maintenance
    widest = max(settings.historical.stages)
    history_start = today - timedelta(days=widest)
    fallback = historical_maintenance(
        calories=between(calories, history_start, today),
        weights=between(weights, history_start, today),
        reference_date=today,
        body_fat=between(body_fat, history_start, today),
        fallback_body_fat=primary_body_fat,
        search=settings.historical.search(maintenance_cfg.baseline_kcal),
        intake_alpha=settings.intake.alpha,
        long_term_alpha=settings.intake.long_term_alpha,
        regression_decay=maintenance_cfg.regression_decay,
        energy_density=maintenance_cfg.energy_density(),
        weight_bounds=maintenance_cfg.weight_bounds(),
    )

    estimator = MaintenanceEstimator(
        calories=IntakeAnalytics(
            current_intakes=current,
            intakes=between(calories, fit_start, fit_end),
            alpha=settings.intake.alpha,
            window=settings.intake.confidence_window(),
            reference_date=today,
            long_term_alpha=settings.intake.long_term_alpha,
        ),
        weights=primary_weights,
        body_fat=primary_body_fat,
        window=maintenance_cfg.confidence_window(),
        fallback_maintenance=fallback,
        energy_density=maintenance_cfg.energy_density(),
        weight_bounds=maintenance_cfg.weight_bounds(),
        regression_decay=maintenance_cfg.regression_decay,
    )

    cycle_start = previous_weekday(today, first_weekday)
    budget = BudgetEngine(
        maintenance=estimator,
        week_intakes=between(calories, cycle_start, yesterday),
        calories=IntakeAnalytics(
            current_intakes=current,
            intakes=between(calories, short_start, short_end),
            alpha=settings.intake.alpha,
            window=settings.intake.confidence_window(),
            reference_date=today,
            long_term_alpha=settings.intake.long_term_alpha,
        ),
        adjustment=adjustment,
        first_weekday=first_weekday,
        reference_date=today,
        max_daily_adjustment=settings.budget.max_daily_adjustment,
    )

    macros = MacroBudgetEngine(
        budget=budget,
        protein=_macro_analytics(samples, HealthKind.PROTEIN, settings, today, tz),
        carbs=_macro_analytics(samples, HealthKind.CARBS, settings, today, tz),
        fat=_macro_analytics(samples, HealthKind.FAT, settings, today, tz),
        percentages=macro_percentages,
    )

    summary = summarize(budget, macros)
    logger.debug(
        "Snapshot for %s: maintenance %.0f (fallback %.0f), budget %.0f, credit %.0f",
        today,
        summary.maintenance,
        summary.fallback_maintenance,
        summary.budget,
        summary.credit,
    )
    return Snapshot(maintenance=estimator, budget=budget, macros=macros, summary=summary)
