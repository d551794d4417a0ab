"""Per-macro gram budgets derived from the calorie budget.

    grams = (base budget × percent / 100) / kcal per gram

Protein and carbohydrate carry 4 kcal/g, fat 9 kcal/g. Macros reset daily:
there is no weekly credit, since amino-acid and glycogen storage windows
are short.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from healthvaults.analytics.budget import BudgetEngine
from healthvaults.analytics.intake import MACRO_WINDOW, IntakeAnalytics
from healthvaults.analytics.models import (
    CALORIES_PER_GRAM,
    MACRO_KINDS,
    HealthKind,
    MacroPercentages,
    Macros,
)


def _empty_macro_analytics() -> IntakeAnalytics:
    return IntakeAnalytics(window=MACRO_WINDOW)


def macro_grams(budget_kcal: float, percent: Optional[float], kind: HealthKind) -> Optional[float]:
    """Gram target for one macro, or None when no percentage is set."""
    if percent is None:
        return None
    return (budget_kcal * percent / 100) / CALORIES_PER_GRAM[kind]


@dataclass(frozen=True)
class MacroBudgetEngine:
    """Daily macro targets and what is left of them today."""

    budget: Optional[BudgetEngine] = None
    protein: IntakeAnalytics = field(default_factory=_empty_macro_analytics)
    carbs: IntakeAnalytics = field(default_factory=_empty_macro_analytics)
    fat: IntakeAnalytics = field(default_factory=_empty_macro_analytics)
    percentages: Optional[MacroPercentages] = None

    def analytics_for(self, kind: HealthKind) -> IntakeAnalytics:
        if kind is HealthKind.PROTEIN:
            return self.protein
        if kind is HealthKind.CARBS:
            return self.carbs
        if kind is HealthKind.FAT:
            return self.fat
        raise ValueError(f"{kind.value} is not a macro-nutrient")

    @property
    def budgets(self) -> Optional[Macros]:
        """Gram targets from the base calorie budget."""
        if self.percentages is None or self.budget is None:
            return None
        base = self.budget.base_budget
        grams = {
            kind: macro_grams(base, self.percentages.for_kind(kind), kind)
            for kind in MACRO_KINDS
        }
        return Macros(
            protein=grams[HealthKind.PROTEIN],
            carbs=grams[HealthKind.CARBS],
            fat=grams[HealthKind.FAT],
        )

    @property
    def remaining(self) -> Optional[Macros]:
        """Budget minus today's intake, per macro."""
        budgets = self.budgets
        if budgets is None:
            return None

        def left(target: Optional[float], kind: HealthKind) -> Optional[float]:
            if target is None:
                return None
            return target - self.analytics_for(kind).current_intake

        return Macros(
            protein=left(budgets.protein, HealthKind.PROTEIN),
            carbs=left(budgets.carbs, HealthKind.CARBS),
            fat=left(budgets.fat, HealthKind.FAT),
        )
