"""Pytest fixtures for analytics tests."""

from __future__ import annotations

from datetime import date

import pytest

from healthvaults.analytics.maintenance import BASELINE_MAINTENANCE, MaintenanceEstimator

from helpers import REFERENCE_WEDNESDAY, empty_intake


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_WEDNESDAY


@pytest.fixture
def empty_estimator() -> MaintenanceEstimator:
    """Estimator with no data at all (falls back to baseline)."""
    return MaintenanceEstimator(
        calories=empty_intake(), fallback_maintenance=BASELINE_MAINTENANCE
    )
