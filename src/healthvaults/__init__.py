"""Maintenance estimation and weekly calorie budgeting from health records."""

__version__ = "0.1.0"
