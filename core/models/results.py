"""
Stage Result Counters.

Plain counters filled by the normalization and aggregation stages and
logged at the end of each stage. No business logic.

Exports:
    NormalizationStats: RewardNormalizer counters
    AggregationStats: HexGridAggregator counters
"""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class NormalizationStats:
    """Counters for one normalization batch."""

    total: int = 0
    normalized: int = 0
    skipped_missing_date: int = 0
    skipped_missing_hotspot: int = 0
    skipped_invalid: int = 0
    defaulted_fields: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_missing_date + self.skipped_missing_hotspot + self.skipped_invalid

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        data['skipped'] = self.skipped
        return data


@dataclass
class AggregationStats:
    """Counters for one aggregation pass."""

    rows: int = 0
    aggregated: int = 0
    no_geo: int = 0
    used_lookup: int = 0
    out_of_window: int = 0
    cells: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
