# ============================================================================
# HEX GRID AGGREGATOR
# ============================================================================
# STATUS: Service - per-day H3 cell aggregation
# PURPOSE: Bucket canonical reward rows into (date, cell) grid rows
# EXPORTS: HexGridAggregator, aggregate_rows
# DEPENDENCIES: h3
# ============================================================================
"""
Hex Grid Aggregator.

Each canonical row is geocoded (row coordinates first, then the hotspot
registry), mapped to its H3 cell at the configured resolution, and summed
into the bucket for (date, cell).

Order independence:
    Contributions are collected per bucket and summed with math.fsum,
    which is exact to the last bit, so any permutation of the input gives
    identical output.

Emission rounding:
    beacon, witness and dc_transfer are rounded half-up to whole bones.
    poc_rewards is the sum of the rounded beacon and witness. When no
    contribution carried an explicit total, total_rewards is the sum of the
    rounded categories, so poc_rewards + dc_transfer == total_rewards holds
    exactly on every emitted row.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Set, Tuple

import h3

from core.logic import round_half_up
from core.models import AggregationStats, CanonicalDailyRow, HexDayCell, HotspotLocation
from util_logger import LoggerFactory, ComponentType
from .base import cell_centroid, valid_coordinates, validate_resolution

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "HexGridAggregator")


@dataclass
class _Bucket:
    beacon: List[float] = field(default_factory=list)
    witness: List[float] = field(default_factory=list)
    dc_transfer: List[float] = field(default_factory=list)
    totals: List[float] = field(default_factory=list)
    explicit_total: bool = False
    hotspots: Set[str] = field(default_factory=set)


class HexGridAggregator:
    """
    Aggregates canonical reward rows onto an H3 grid, one row per (date, cell).

    Args:
        resolution: H3 resolution (0-15)
        registry: Hotspot -> static location, used when a row has no coordinates
        days: Keep rows dated on or after as_of - days (None or <= 0 keeps all)
        as_of: Reference day for the window (defaults to today, UTC)
    """

    def __init__(
        self,
        resolution: int,
        registry: Optional[Dict[str, HotspotLocation]] = None,
        days: Optional[int] = None,
        as_of: Optional[date] = None
    ):
        self.resolution = validate_resolution(resolution)
        self.registry = registry or {}
        self.days = days
        self.as_of = as_of or datetime.now(timezone.utc).date()
        self.stats = AggregationStats()

    @property
    def min_date(self) -> Optional[str]:
        """First day kept by the window, or None when the window is off."""
        if self.days is None or self.days <= 0:
            return None
        return (self.as_of - timedelta(days=self.days)).isoformat()

    def locate(self, row: CanonicalDailyRow) -> Optional[Tuple[float, float]]:
        """
        Coordinates for a row: its own if valid, else the registry's.

        Returns None when neither is usable.
        """
        if valid_coordinates(row.lat, row.lon):
            return row.lat, row.lon
        location = self.registry.get(row.hotspot)
        if location is not None and valid_coordinates(location.lat, location.lon):
            self.stats.used_lookup += 1
            return location.lat, location.lon
        return None

    def aggregate(self, rows: Iterable[CanonicalDailyRow]) -> List[HexDayCell]:
        """
        Aggregate rows into grid rows sorted by date, then cell id.

        Args:
            rows: Canonical daily rows

        Returns:
            One HexDayCell per (date, cell) with at least one located row
        """
        min_date = self.min_date
        buckets: Dict[Tuple[str, str], _Bucket] = {}

        for row in rows:
            self.stats.rows += 1
            if min_date is not None and row.date < min_date:
                self.stats.out_of_window += 1
                continue

            located = self.locate(row)
            if located is None:
                self.stats.no_geo += 1
                continue

            cell = h3.latlng_to_cell(located[0], located[1], self.resolution)
            bucket = buckets.get((row.date, cell))
            if bucket is None:
                bucket = buckets[(row.date, cell)] = _Bucket()

            bucket.beacon.append(row.beacon)
            bucket.witness.append(row.witness)
            bucket.dc_transfer.append(row.dc_transfer)
            bucket.totals.append(row.total_rewards)
            bucket.explicit_total = bucket.explicit_total or row.explicit_total
            bucket.hotspots.add(row.hotspot)
            self.stats.aggregated += 1

        cells = [self._emit(day, cell, bucket) for (day, cell), bucket in buckets.items()]
        cells.sort(key=lambda c: (c.date, c.hex))
        self.stats.cells = len(cells)

        if self.stats.no_geo:
            logger.warning(f"⚠️ {self.stats.no_geo} rows had no usable location and were dropped")
        logger.info(
            f"✅ Aggregated {self.stats.aggregated} rows into {len(cells)} cell-days at r{self.resolution}",
            extra={'custom_dimensions': self.stats.to_dict()}
        )
        return cells

    def _emit(self, day: str, cell: str, bucket: _Bucket) -> HexDayCell:
        beacon = round_half_up(math.fsum(bucket.beacon))
        witness = round_half_up(math.fsum(bucket.witness))
        dc_transfer = round_half_up(math.fsum(bucket.dc_transfer))
        poc = beacon + witness
        if bucket.explicit_total:
            total = round_half_up(math.fsum(bucket.totals))
        else:
            total = poc + dc_transfer

        lat, lon = cell_centroid(cell)
        return HexDayCell(
            date=day,
            hex=cell,
            res=self.resolution,
            lat=lat,
            lon=lon,
            beacon=beacon,
            witness=witness,
            dc_transfer=dc_transfer,
            poc_rewards=poc,
            total_rewards=total,
            hotspot_count=len(bucket.hotspots),
        )


def aggregate_rows(
    rows: Iterable[CanonicalDailyRow],
    resolution: int,
    registry: Optional[Dict[str, HotspotLocation]] = None,
    days: Optional[int] = None,
    as_of: Optional[date] = None
) -> Tuple[List[HexDayCell], AggregationStats]:
    """Aggregate with a fresh HexGridAggregator; returns (cells, stats)."""
    aggregator = HexGridAggregator(resolution, registry=registry, days=days, as_of=as_of)
    cells = aggregator.aggregate(rows)
    return cells, aggregator.stats
