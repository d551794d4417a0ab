"""Sample import."""

from __future__ import annotations

from healthvaults.data.sample_loader import SampleLoader, SampleSet

__all__ = ["SampleLoader", "SampleSet"]
