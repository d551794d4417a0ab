"""Load health samples from CSV exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from healthvaults.analytics.models import DailySeries, DatedSample, HealthKind
from healthvaults.analytics.timeseries import bucket_daily


@dataclass
class SampleSet:
    """Raw samples grouped by health kind."""

    samples: dict[HealthKind, list[DatedSample]] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls, records: Iterable[tuple[Union[str, HealthKind], datetime, float]]
    ) -> "SampleSet":
        """Build a sample set from (kind, timestamp, value) tuples."""
        sample_set = cls()
        for kind, timestamp, value in records:
            if not isinstance(kind, HealthKind):
                kind = HealthKind.parse(kind)
            sample_set.add(kind, DatedSample(timestamp, float(value)))
        return sample_set

    def add(self, kind: HealthKind, sample: DatedSample) -> None:
        self.samples.setdefault(kind, []).append(sample)

    def count(self, kind: HealthKind) -> int:
        return len(self.samples.get(kind, []))

    def daily(self, kind: HealthKind, tz: Optional[tzinfo] = None) -> DailySeries:
        """Bucket one kind per calendar day using the kind's aggregation."""
        return bucket_daily(self.samples.get(kind, []), kind.aggregation, tz)


class SampleLoader:
    """Handles importing health samples from CSV files."""

    REQUIRED_COLUMNS = ["timestamp", "kind", "value"]

    def load_from_csv(self, csv_path: Path) -> tuple[SampleSet, dict[str, int]]:
        """Load samples from a CSV file.

        CSV format:
            timestamp,kind,value
            2025-01-15T08:10:00,body_mass,71.4
            2025-01-15T12:30:00,dietary_calories,640

        Args:
            csv_path: Path to the CSV file

        Returns:
            Tuple of (SampleSet, counts) where counts is
            {'loaded': n, 'skipped_missing_value': m}

        Raises:
            ValueError: If required columns are missing, a kind is unknown,
                or a timestamp cannot be parsed
        """
        df = pd.read_csv(csv_path)

        # Validate required columns
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(
                f"Missing required columns: {sorted(missing)}. "
                f"Required columns are: {self.REQUIRED_COLUMNS}"
            )

        # Per cell so rows with different UTC offsets keep their own offset
        timestamps = df["timestamp"].map(_parse_timestamp)
        bad_rows = df.index[timestamps.isna() & df["timestamp"].notna()]
        if len(bad_rows):
            first = df.loc[bad_rows[0], "timestamp"]
            raise ValueError(f"Unparsable timestamp '{first}' on row {bad_rows[0] + 2}")

        values = pd.to_numeric(df["value"], errors="coerce")

        sample_set = SampleSet()
        loaded = 0
        skipped_missing_value = 0

        for index, row in df.iterrows():
            timestamp = timestamps[index]
            value = values[index]

            # Skip rows without a usable value or timestamp
            if pd.isna(value) or pd.isna(timestamp):
                skipped_missing_value += 1
                continue

            kind = HealthKind.parse(str(row["kind"]))
            sample_set.add(kind, DatedSample(timestamp.to_pydatetime(), float(value)))
            loaded += 1

        return sample_set, {
            "loaded": loaded,
            "skipped_missing_value": skipped_missing_value,
        }


def _parse_timestamp(value: object) -> pd.Timestamp:
    """Parse one ISO 8601 cell, NaT when empty or unparsable."""
    if pd.isna(value):
        return pd.NaT
    return pd.to_datetime(str(value).strip(), errors="coerce", format="ISO8601")
