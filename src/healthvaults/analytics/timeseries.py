"""Daily bucketing, gap-aware smoothing, and weighted trend regression.

Gap-aware exponential smoothing:
    S_0 = C_0
    S_n = α_eff × C_n + (1 - α_eff) × S_{n-1}
    α_eff = 1 - (1 - α)^gap

where gap is the number of calendar days since the previous recorded day.
For consecutive days α_eff equals α. After a long silence the old estimate
is decayed once per unobserved day, so a value recorded after a gap
dominates proportionally. No values are fabricated for missing days.

Weighted least squares gives each point weight decay^(days ago), so the
slope follows recent changes while still using the whole window.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np

from healthvaults.analytics.models import Aggregation, DailySeries, DatedSample

# Short-term smoothing (~7 day equivalent), used for display
DEFAULT_ALPHA = 0.25
# Long-term smoothing (~20 day equivalent), used for maintenance
MAINTENANCE_ALPHA = 0.1
# Per-day retention factor for regression weights
DEFAULT_REGRESSION_DECAY = 0.9


# ============================================================================
# Calendar arithmetic
# ============================================================================


def day_of(timestamp: datetime, tz: Optional[tzinfo] = None) -> date:
    """Return the calendar day of a timestamp in the given timezone.

    Naive timestamps are taken to be local already.
    """
    if tz is not None and timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz)
    return timestamp.date()


def floor_to_day(timestamp: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Start of the calendar day containing ``timestamp``."""
    day = day_of(timestamp, tz)
    zone = tz if tz is not None else timestamp.tzinfo
    return datetime.combine(day, time.min, tzinfo=zone)


def ceil_to_day(timestamp: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Last whole second of the calendar day containing ``timestamp``."""
    return floor_to_day(timestamp, tz) + timedelta(days=1, seconds=-1)


def date_range(end: date, days: int = 1) -> tuple[date, date]:
    """Range of ``days`` calendar days ending at ``end`` (inclusive)."""
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    return end - timedelta(days=days - 1), end


def day_distance(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def next_weekday(day: date, weekday: int) -> date:
    """Next occurrence of ``weekday`` strictly after ``day``.

    Weekdays follow the ``calendar`` module (Monday == 0).
    """
    offset = (weekday - day.weekday()) % 7
    return day + timedelta(days=offset or 7)


def previous_weekday(day: date, weekday: int) -> date:
    """Most recent occurrence of ``weekday`` on or before ``day``."""
    offset = (day.weekday() - weekday) % 7
    return day - timedelta(days=offset)


# ============================================================================
# Series helpers
# ============================================================================


def bucket_daily(
    samples: Iterable[DatedSample],
    aggregation: Aggregation,
    tz: Optional[tzinfo] = None,
) -> DailySeries:
    """Collapse samples into one value per calendar day.

    NaN samples are dropped before aggregating.

    Args:
        samples: Dated samples in any order
        aggregation: SUM for cumulative kinds, MEAN for discrete kinds
        tz: Timezone used to decide which day a sample falls on

    Returns:
        Mapping of day to aggregated value
    """
    buckets: dict[date, list[float]] = {}
    for sample in samples:
        if sample.value is None or math.isnan(sample.value):
            continue
        buckets.setdefault(day_of(sample.timestamp, tz), []).append(sample.value)

    if aggregation is Aggregation.SUM:
        return {day: math.fsum(values) for day, values in buckets.items()}
    return {day: math.fsum(values) / len(values) for day, values in buckets.items()}


def window(
    series: Mapping[date, float], reference_date: date, window_days: int
) -> DailySeries:
    """Entries within the trailing ``window_days`` ending at ``reference_date``."""
    cutoff = reference_date - timedelta(days=window_days)
    return {day: value for day, value in series.items() if cutoff < day <= reference_date}


def between(series: Mapping[date, float], start: date, end: date) -> DailySeries:
    """Entries with ``start <= day <= end``."""
    return {day: value for day, value in series.items() if start <= day <= end}


def sorted_entries(series: Mapping[date, float]) -> list[tuple[date, float]]:
    """Series as (day, value) pairs, oldest first."""
    return sorted(series.items())


def span_days(series: Mapping[date, float]) -> int:
    """Days between the earliest and latest entries (0 when fewer than 2)."""
    if not series:
        return 0
    return day_distance(min(series), max(series))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` to ``[low, high]``."""
    return min(max(value, low), high)


# ============================================================================
# Smoothing and regression
# ============================================================================


def time_scaled_alpha(base_alpha: float, days_elapsed: int) -> float:
    """
    Adjust smoothing factor for non-daily measurements.

    Args:
        base_alpha: Per-day smoothing factor
        days_elapsed: Days since last recorded value (values < 1 count as 1)

    Returns:
        Effective smoothing factor 1 - (1 - base_alpha)^days_elapsed

    Example:
        >>> time_scaled_alpha(0.25, 1)
        0.25
        >>> round(time_scaled_alpha(0.25, 3), 4)
        0.5781
    """
    if days_elapsed <= 0:
        days_elapsed = 1
    return 1 - (1 - base_alpha) ** days_elapsed


def gap_aware_ewma(
    entries: Sequence[tuple[date, float]], alpha: float
) -> Optional[float]:
    """
    Smooth chronologically sorted daily values, decaying across gaps.

    Args:
        entries: (day, value) pairs sorted oldest first
        alpha: Base per-day smoothing factor in (0, 1)

    Returns:
        Smoothed value, or None when there are no entries
    """
    if not entries:
        return None

    previous_day, smoothed = entries[0]
    for day, value in entries[1:]:
        effective = time_scaled_alpha(alpha, day_distance(previous_day, day))
        smoothed = effective * value + (1 - effective) * smoothed
        previous_day = day
    return smoothed


def weighted_slope(
    series: Mapping[date, float],
    reference_date: date,
    decay: float = DEFAULT_REGRESSION_DECAY,
) -> float:
    """
    Weighted least-squares slope of a daily series (units per day).

    Each point is weighted by decay^(days before reference_date).

    Returns:
        Slope, or 0 for fewer than two points or zero weighted time variance
    """
    if len(series) < 2:
        return 0.0

    entries = sorted_entries(series)
    first_day = entries[0][0]
    t = np.array([day_distance(first_day, day) for day, _ in entries], dtype=float)
    y = np.array([value for _, value in entries], dtype=float)
    days_ago = np.array([day_distance(day, reference_date) for day, _ in entries], dtype=float)
    w = np.power(decay, days_ago)

    total = w.sum()
    if not total > 0:
        return 0.0

    mean_t = np.dot(w, t) / total
    mean_y = np.dot(w, y) / total
    dt = t - mean_t
    denominator = float(np.dot(w, dt * dt))
    if denominator == 0:
        return 0.0
    return float(np.dot(w, dt * (y - mean_y)) / denominator)
