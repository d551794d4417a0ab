"""Configuration management."""

from __future__ import annotations

from healthvaults.config.settings import Settings, default_config_path, parse_weekday

__all__ = ["Settings", "default_config_path", "parse_weekday"]
