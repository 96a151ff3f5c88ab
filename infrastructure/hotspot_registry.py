# ============================================================================
# HOTSPOT REGISTRY
# ============================================================================
# STATUS: Infrastructure - static hotspot locations
# PURPOSE: Load hotspot coordinates used for geocoding and density
# EXPORTS: HotspotRegistryRepository
# ============================================================================
"""
Hotspot registry loading.

Accepted layouts:
    - Mapping:   ``{"<hotspot key>": {"lat": .., "lon": ..}, ...}``
    - JSON array / JSON Lines of objects with a key field
      (``hotspot``, ``hotspot_key``, ``address`` or ``gateway``) and
      coordinates (``lat``/``latitude``, ``lon``/``lng``/``long``/``longitude``)

Entries without usable coordinates are dropped. A missing registry file is
not an error: the refresh runs on row-carried coordinates alone and every
density is zero.
"""

import json
import math
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from core.models import HotspotLocation
from exceptions import PipelineError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "HotspotRegistryRepository")

KEY_FIELDS = ("hotspot", "hotspot_key", "address", "gateway")
LAT_FIELDS = ("lat", "latitude")
LON_FIELDS = ("lon", "lng", "long", "longitude")


def _first_number(entry: Mapping[str, Any], names: Iterable[str]) -> Optional[float]:
    for name in names:
        value = entry.get(name)
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            return number
    return None


def valid_coordinates(lat: Optional[float], lon: Optional[float]) -> bool:
    """Finite and within [-90, 90] x [-180, 180]."""
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


class HotspotRegistryRepository:
    """Reads the static hotspot registry from the local filesystem."""

    def __init__(self, path: Union[str, Path, None]):
        self.path = Path(path) if path else None

    def load(self) -> Dict[str, HotspotLocation]:
        """
        Load the registry keyed by hotspot id.

        Returns:
            Dict of hotspot -> HotspotLocation (empty when no file is configured
            or the file does not exist)

        Raises:
            PipelineError: File exists but is not valid JSON
        """
        if self.path is None or not self.path.exists():
            logger.warning(f"⚠️ Hotspot registry not found: {self.path} (density will be zero)")
            return {}

        text = self.path.read_text(encoding="utf-8")
        try:
            if text.lstrip().startswith(("{", "[")) and not self._looks_like_jsonl(text):
                data = json.loads(text)
            else:
                data = [json.loads(line) for line in text.splitlines() if line.strip()]
        except json.JSONDecodeError as e:
            raise PipelineError(f"Hotspot registry {self.path} is not valid JSON: {e}") from e

        registry = self.parse(data)
        logger.info(
            f"✅ Loaded {len(registry)} located hotspots from {self.path}",
            extra={'custom_dimensions': {'path': str(self.path), 'hotspots': len(registry)}}
        )
        return registry

    @staticmethod
    def _looks_like_jsonl(text: str) -> bool:
        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) < 2 or not lines[0].lstrip().startswith("{"):
            return False
        try:
            json.loads(lines[0])
        except json.JSONDecodeError:
            return False
        return True

    @staticmethod
    def parse(data: Any) -> Dict[str, HotspotLocation]:
        """
        Build registry entries from decoded JSON.

        Args:
            data: Mapping of key -> {lat, lon} or a list of entry objects

        Returns:
            Dict of hotspot -> HotspotLocation, located entries only
        """
        if isinstance(data, Mapping):
            items = [
                (str(key), value) for key, value in data.items() if isinstance(value, Mapping)
            ]
        else:
            items = []
            for entry in data or []:
                if not isinstance(entry, Mapping):
                    continue
                key = next((entry[k] for k in KEY_FIELDS if entry.get(k)), None)
                if key:
                    items.append((str(key), entry))

        registry: Dict[str, HotspotLocation] = {}
        dropped = 0
        for key, entry in items:
            lat = _first_number(entry, LAT_FIELDS)
            lon = _first_number(entry, LON_FIELDS)
            if not valid_coordinates(lat, lon):
                dropped += 1
                continue
            registry[key] = HotspotLocation(
                hotspot=key,
                lat=lat,
                lon=lon,
                gain=_first_number(entry, ("gain",)),
                elevation=_first_number(entry, ("elevation",)),
            )

        if dropped:
            logger.debug(f"Dropped {dropped} registry entries without usable coordinates")
        return registry
