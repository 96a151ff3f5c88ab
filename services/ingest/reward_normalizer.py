# ============================================================================
# REWARD NORMALIZER
# ============================================================================
# STATUS: Service - raw reward payload normalization
# PURPOSE: Map heterogeneous upstream payloads onto CanonicalDailyRow
# EXPORTS: RewardNormalizer, normalize_batch
# DEPENDENCIES: core.models
# ============================================================================
"""
Reward Normalizer.

Upstream reward payloads come in several shapes: flat records, records
nested under ``reward_detail`` / ``reward_manifest``, bone-denominated or
token-denominated ("formatted") amounts. Each canonical field is resolved
from an ordered fallback chain; the first candidate that is present and
non-empty wins.

Field chains:
    date        reward_manifest.end_timestamp, end_period, endTimestamp, date,
                date_end, reward_manifest.start_timestamp, start_period, date_start
    hotspot     reward_detail.hotspot_key, hotspot_key, hotspot, gateway
    beacon      reward_detail.beacon_amount, beacon_amount, beacon
                then formatted_beacon_amount (tokens)
    witness     reward_detail.witness_amount, witness_amount, witness
                then formatted_witness_amount (tokens)
    dc_transfer reward_detail.dc_transfer_amount, dc_transfer_amount, dc_transfer, data
                then formatted_dc_transfer_amount (tokens)
    total       reward_detail.total_amount, total_amount, reward_detail.amount,
                total_bones, total_rewards
    lat / lon   lat, latitude / lon, long, lng, longitude

Data-quality problems never raise. Records without a usable date or
hotspot are skipped; unusable amounts default to 0. Both are counted in
NormalizationStats and logged.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config.defaults import PipelineDefaults
from core.models import CanonicalDailyRow, NormalizationStats
from core.models.rewards import DATE_PATTERN
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RewardNormalizer")


# ============================================================================
# FIELD CHAINS
# ============================================================================

DATE_FIELDS = (
    "reward_manifest.end_timestamp",
    "end_period",
    "endTimestamp",
    "date",
    "date_end",
    "reward_manifest.start_timestamp",
    "start_period",
    "date_start",
)

HOTSPOT_FIELDS = (
    "reward_detail.hotspot_key",
    "hotspot_key",
    "hotspot",
    "gateway",
)

# (bones chain, token chain)
AMOUNT_FIELDS: Dict[str, Tuple[Sequence[str], Sequence[str]]] = {
    "beacon": (
        ("reward_detail.beacon_amount", "beacon_amount", "beacon"),
        ("reward_detail.formatted_beacon_amount", "formatted_beacon_amount"),
    ),
    "witness": (
        ("reward_detail.witness_amount", "witness_amount", "witness"),
        ("reward_detail.formatted_witness_amount", "formatted_witness_amount"),
    ),
    "dc_transfer": (
        ("reward_detail.dc_transfer_amount", "dc_transfer_amount", "dc_transfer", "data"),
        ("reward_detail.formatted_dc_transfer_amount", "formatted_dc_transfer_amount"),
    ),
}

TOTAL_FIELDS = (
    "reward_detail.total_amount",
    "total_amount",
    "reward_detail.amount",
    "total_bones",
    "total_rewards",
)

LAT_FIELDS = ("lat", "latitude")
LON_FIELDS = ("lon", "long", "lng", "longitude")


# ============================================================================
# LOOKUP AND COERCION HELPERS
# ============================================================================

_MISSING = object()


def lookup(record: Mapping[str, Any], dotted: str) -> Any:
    """
    Read a possibly nested value by dotted name.

    Returns _MISSING when any segment is absent or not a mapping.
    """
    current: Any = record
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _is_present(value: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def first_present(record: Mapping[str, Any], names: Iterable[str]) -> Any:
    """First present, non-empty value along a chain, or _MISSING."""
    for name in names:
        value = lookup(record, name)
        if _is_present(value):
            return value
    return _MISSING


def coerce_amount(value: Any) -> Optional[float]:
    """
    Coerce an amount to a finite non-negative float.

    Returns None when the value is unusable (non-numeric, non-finite or negative).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def coerce_date(value: Any) -> Optional[str]:
    """First 10 characters of a timestamp, if they form YYYY-MM-DD."""
    text = str(value).strip()[:10]
    return text if DATE_PATTERN.match(text) else None


def coerce_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# ============================================================================
# NORMALIZER
# ============================================================================

class RewardNormalizer:
    """
    Normalizes raw reward payloads into CanonicalDailyRow.

    One instance accumulates counters across calls; use a fresh instance
    (or normalize_batch) per batch.
    """

    def __init__(
        self,
        bones_per_token: float = PipelineDefaults.BONES_PER_TOKEN,
        max_issue_warnings: int = PipelineDefaults.MAX_ISSUE_WARNINGS
    ):
        self.bones_per_token = bones_per_token
        self.max_issue_warnings = max_issue_warnings
        self.stats = NormalizationStats()
        self._issues_logged = 0

    def _warn(self, message: str) -> None:
        self._issues_logged += 1
        if self._issues_logged <= self.max_issue_warnings:
            logger.warning(f"⚠️ {message}")

    def _resolve_date(self, record: Mapping[str, Any]) -> Optional[str]:
        for name in DATE_FIELDS:
            value = lookup(record, name)
            if not _is_present(value):
                continue
            day = coerce_date(value)
            if day:
                return day
        return None

    def _resolve_amount(self, record: Mapping[str, Any], field: str) -> float:
        bones_chain, token_chain = AMOUNT_FIELDS[field]

        value = first_present(record, bones_chain)
        scale = 1.0
        if value is _MISSING:
            value = first_present(record, token_chain)
            scale = float(self.bones_per_token)
        if value is _MISSING:
            return 0.0

        amount = coerce_amount(value)
        if amount is None:
            self.stats.defaulted_fields += 1
            self._warn(f"Unusable {field} value {value!r} defaulted to 0")
            return 0.0
        return amount * scale

    def _resolve_total(self, record: Mapping[str, Any]) -> Optional[float]:
        value = first_present(record, TOTAL_FIELDS)
        if value is _MISSING:
            return None
        amount = coerce_amount(value)
        if amount is None:
            self.stats.defaulted_fields += 1
            self._warn(f"Unusable total value {value!r} ignored; using category sum")
            return None
        return amount

    def normalize(self, record: Mapping[str, Any]) -> Optional[CanonicalDailyRow]:
        """
        Normalize one raw payload.

        Args:
            record: Raw payload (possibly nested)

        Returns:
            CanonicalDailyRow, or None when the record is skipped
        """
        self.stats.total += 1

        day = self._resolve_date(record)
        if day is None:
            self.stats.skipped_missing_date += 1
            self._warn("Skipping reward record without a usable date")
            return None

        hotspot = first_present(record, HOTSPOT_FIELDS)
        if hotspot is _MISSING:
            self.stats.skipped_missing_hotspot += 1
            self._warn(f"Skipping reward record for {day} without a hotspot key")
            return None

        beacon = self._resolve_amount(record, "beacon")
        witness = self._resolve_amount(record, "witness")
        dc_transfer = self._resolve_amount(record, "dc_transfer")
        total = self._resolve_total(record)

        lat = first_present(record, LAT_FIELDS)
        lon = first_present(record, LON_FIELDS)

        row = CanonicalDailyRow(
            date=day,
            hotspot=str(hotspot).strip(),
            beacon=beacon,
            witness=witness,
            dc_transfer=dc_transfer,
            total_rewards=total if total is not None else 0.0,
            explicit_total=total is not None,
            lat=coerce_coordinate(lat) if lat is not _MISSING else None,
            lon=coerce_coordinate(lon) if lon is not _MISSING else None,
        )
        self.stats.normalized += 1
        return row

    def normalize_batch(
        self,
        records: Iterable[Mapping[str, Any]]
    ) -> Tuple[List[CanonicalDailyRow], NormalizationStats]:
        """
        Normalize many payloads, skipping unusable ones.

        Returns:
            (rows, stats) where stats covers this call and any earlier ones
        """
        rows = []
        for record in records:
            if not isinstance(record, Mapping):
                self.stats.total += 1
                self.stats.skipped_invalid += 1
                self._warn(f"Skipping non-object reward record of type {type(record).__name__}")
                continue
            row = self.normalize(record)
            if row is not None:
                rows.append(row)

        if self._issues_logged > self.max_issue_warnings:
            logger.warning(
                f"⚠️ {self._issues_logged} normalization issues in batch "
                f"(first {self.max_issue_warnings} logged individually)"
            )
        logger.info(
            f"✅ Normalized {self.stats.normalized}/{self.stats.total} reward records",
            extra={'custom_dimensions': self.stats.to_dict()}
        )
        return rows, self.stats


def normalize_batch(
    records: Iterable[Mapping[str, Any]],
    bones_per_token: float = PipelineDefaults.BONES_PER_TOKEN
) -> Tuple[List[CanonicalDailyRow], NormalizationStats]:
    """Normalize a batch with a fresh RewardNormalizer."""
    return RewardNormalizer(bones_per_token=bones_per_token).normalize_batch(records)
