"""Analytics settings and configuration management."""

from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from healthvaults.analytics.intake import CALORIE_WINDOW, MACRO_WINDOW
from healthvaults.analytics.maintenance import (
    BASELINE_MAINTENANCE,
    HISTORICAL_STAGES,
    MIN_HISTORICAL_CALORIE_DAYS,
    MIN_HISTORICAL_WEIGHT_DAYS,
    WEIGHT_WINDOW,
    HistoricalSearch,
)
from healthvaults.analytics.models import (
    ConfidenceWindow,
    EnergyDensityConstants,
    WeightBounds,
)
from healthvaults.analytics.timeseries import (
    DEFAULT_ALPHA,
    DEFAULT_REGRESSION_DECAY,
    MAINTENANCE_ALPHA,
)

WEEKDAYS = [name.lower() for name in calendar.day_name]


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".healthvaults"


def default_config_path() -> Path:
    return _default_config_dir() / "config.yaml"


def parse_weekday(value: Any) -> int:
    """Parse a weekday name ("monday") or number (0 = Monday)."""
    if isinstance(value, int):
        day = value
    else:
        text = str(value).strip().lower()
        if text.isdigit():
            day = int(text)
        elif text in WEEKDAYS:
            return WEEKDAYS.index(text)
        else:
            raise ValueError(f"Unknown weekday '{value}', expected one of {WEEKDAYS}")
    if not 0 <= day <= 6:
        raise ValueError(f"Weekday must be within 0-6, got {day}")
    return day


@dataclass
class IntakeConfig:
    """Calorie intake smoothing configuration."""

    alpha: float = DEFAULT_ALPHA
    long_term_alpha: float = MAINTENANCE_ALPHA
    window_days: int = CALORIE_WINDOW.window_days
    min_data_points: int = CALORIE_WINDOW.min_data_points

    def confidence_window(self) -> ConfidenceWindow:
        return ConfidenceWindow(self.window_days, self.min_data_points)


@dataclass
class MacrosConfig:
    """Macro-nutrient intake smoothing configuration."""

    alpha: float = DEFAULT_ALPHA
    window_days: int = MACRO_WINDOW.window_days
    min_data_points: int = MACRO_WINDOW.min_data_points

    def confidence_window(self) -> ConfidenceWindow:
        return ConfidenceWindow(self.window_days, self.min_data_points)


@dataclass
class MaintenanceConfig:
    """Weight regression and energy-balance configuration."""

    window_days: int = WEIGHT_WINDOW.window_days
    min_weight_points: int = WEIGHT_WINDOW.min_data_points
    regression_decay: float = DEFAULT_REGRESSION_DECAY
    max_loss_per_week: float = 1.0
    max_gain_per_week: float = 0.5
    baseline_kcal: float = BASELINE_MAINTENANCE
    forbes_constant: float = 10.4
    fat_tissue_kcal: float = 9440.0
    lean_tissue_kcal: float = 1816.0
    default_rho: float = 7350.0

    def confidence_window(self) -> ConfidenceWindow:
        return ConfidenceWindow(self.window_days, self.min_weight_points)

    def weight_bounds(self) -> WeightBounds:
        return WeightBounds(self.max_loss_per_week, self.max_gain_per_week)

    def energy_density(self) -> EnergyDensityConstants:
        return EnergyDensityConstants(
            forbes_constant=self.forbes_constant,
            fat_tissue_kcal=self.fat_tissue_kcal,
            lean_tissue_kcal=self.lean_tissue_kcal,
            default_rho=self.default_rho,
        )


@dataclass
class HistoricalConfig:
    """Personal fallback search configuration."""

    stages: list[int] = field(default_factory=lambda: list(HISTORICAL_STAGES))
    min_weight_days: int = MIN_HISTORICAL_WEIGHT_DAYS
    min_calorie_days: int = MIN_HISTORICAL_CALORIE_DAYS

    def search(self, baseline: float) -> HistoricalSearch:
        return HistoricalSearch(
            stages=tuple(self.stages),
            min_weight_days=self.min_weight_days,
            min_calorie_days=self.min_calorie_days,
            baseline=baseline,
        )


@dataclass
class BudgetConfig:
    """Weekly budget configuration."""

    max_daily_adjustment: float = 500.0
    first_weekday: str = "monday"

    @property
    def first_weekday_number(self) -> int:
        return parse_weekday(self.first_weekday)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main analytics settings."""

    intake: IntakeConfig = field(default_factory=IntakeConfig)
    macros: MacrosConfig = field(default_factory=MacrosConfig)
    maintenance: MaintenanceConfig = field(default_factory=MaintenanceConfig)
    historical: HistoricalConfig = field(default_factory=HistoricalConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Only keys present in the file override the defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.healthvaults/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping of sections, got {type(data).__name__}")

        settings = cls()
        for section in fields(settings):
            if section.name in data and data[section.name]:
                _update_section(section.name, getattr(settings, section.name), data[section.name])
        return settings

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.healthvaults/config.yaml
        """
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def _update_section(name: str, section: Any, data: dict[str, Any]) -> None:
    """Overwrite known keys of a config section, casting to the default's type.

    Raises:
        ValueError: If the section is not a mapping or a value cannot be cast
    """
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(data).__name__}")

    for item in fields(section):
        if item.name not in data:
            continue
        current = getattr(section, item.name)
        value = data[item.name]
        try:
            if isinstance(current, list):
                if not isinstance(value, list):
                    raise TypeError("expected a list")
                value = [int(v) for v in value]
            elif isinstance(current, bool):
                value = bool(value)
            elif isinstance(current, (int, float, str)):
                if value is None:
                    raise TypeError("value is missing")
                value = type(current)(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for {name}.{item.name}: {value!r}") from e
        setattr(section, item.name, value)
