"""Serialization utilities for BudgetSnapshot round-trip.

These functions let the last known good snapshot be cached as JSON and read
back into an equal BudgetSnapshot, preserving every field exactly (floats
are written with full precision, None stays None).
"""

from __future__ import annotations

import json
from dataclasses import MISSING, fields
from datetime import date
from pathlib import Path
from typing import Any

from healthvaults.analytics.snapshot import BudgetSnapshot

_REQUIRED = [
    f.name
    for f in fields(BudgetSnapshot)
    if f.default is MISSING and f.default_factory is MISSING
]
_INT_FIELDS = {"days_left"}
_BOOL_FIELDS = {"is_valid"}


def serialize_snapshot(snapshot: BudgetSnapshot) -> dict[str, Any]:
    """Convert a BudgetSnapshot to a JSON-serializable dict.

    Args:
        snapshot: The snapshot to serialize

    Returns:
        Dictionary compatible with deserialize_snapshot()
    """
    data: dict[str, Any] = {}
    for item in fields(snapshot):
        value = getattr(snapshot, item.name)
        if isinstance(value, date):
            value = value.isoformat()
        data[item.name] = value
    return data


def deserialize_snapshot(data: dict[str, Any]) -> BudgetSnapshot:
    """Convert a dict produced by serialize_snapshot() back to a BudgetSnapshot.

    Raises:
        ValueError: If the data is not a mapping or a required field is missing
    """
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be a JSON object, got {type(data).__name__}")

    missing = [name for name in _REQUIRED if name not in data]
    if missing:
        raise ValueError(f"Snapshot is missing required fields: {missing}")

    values: dict[str, Any] = {}
    for item in fields(BudgetSnapshot):
        if item.name not in data:
            continue
        value = data[item.name]
        if item.name == "reference_date":
            value = date.fromisoformat(value)
        elif value is None:
            pass
        elif item.name in _INT_FIELDS:
            value = int(value)
        elif item.name in _BOOL_FIELDS:
            value = bool(value)
        else:
            value = float(value)
        values[item.name] = value
    return BudgetSnapshot(**values)


def save_snapshot(snapshot: BudgetSnapshot, path: Path) -> None:
    """Write a snapshot to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(serialize_snapshot(snapshot), f, indent=2)


def load_snapshot(path: Path) -> BudgetSnapshot:
    """Read a snapshot written by save_snapshot()."""
    with open(path) as f:
        return deserialize_snapshot(json.load(f))
