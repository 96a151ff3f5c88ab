"""
Density Engine.

Registry-derived neighborhood density per H3 cell:

    density_k1(cell) = registry hotspots in the cell
                       + registry hotspots in each ring-1 neighbor

Neighbors come from h3.grid_disk(cell, 1) minus the cell itself: six for
a hexagon, five for a pentagon. Cells missing from the registry count 0.
Density depends only on the registry, never on the reward day.
"""

from collections import Counter
from typing import Dict, List, Optional

import h3

from core.models import HexDayCell, HexStaticIndex, HotspotLocation
from util_logger import LoggerFactory, ComponentType
from .base import valid_coordinates, validate_resolution

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "DensityEngine")


def ring_neighbors(cell: str, ring: int = 1) -> List[str]:
    """Cells within grid distance ``ring`` of ``cell``, excluding it, sorted."""
    return sorted(c for c in h3.grid_disk(cell, ring) if c != cell)


def build_static_index(
    registry: Dict[str, HotspotLocation],
    resolution: int,
    ring: int = 1
) -> HexStaticIndex:
    """
    Count registry hotspots per cell and precompute their neighbors.

    Args:
        registry: Hotspot -> static location
        resolution: H3 resolution
        ring: Neighborhood radius

    Returns:
        HexStaticIndex for the resolution
    """
    resolution = validate_resolution(resolution)
    counts: Counter = Counter()
    for location in registry.values():
        if not valid_coordinates(location.lat, location.lon):
            continue
        counts[h3.latlng_to_cell(location.lat, location.lon, resolution)] += 1

    neighbors = {cell: ring_neighbors(cell, ring) for cell in counts}
    logger.info(
        f"🎯 Static index: {sum(counts.values())} hotspots in {len(counts)} cells at r{resolution}"
    )
    return HexStaticIndex(
        resolution=resolution,
        ring=ring,
        counts=dict(counts),
        neighbors=neighbors,
    )


def density_k1(cell: str, index: HexStaticIndex) -> int:
    """
    Registry hotspots in the cell plus its ring neighbors.

    Works for cells absent from the registry (neighbors computed on demand).
    """
    neighbors = index.neighbors.get(cell)
    if neighbors is None:
        neighbors = ring_neighbors(cell, index.ring)
    return index.count(cell) + sum(index.count(n) for n in neighbors)


def attach_density(
    cells: List[HexDayCell],
    index: HexStaticIndex,
    cache: Optional[Dict[str, int]] = None
) -> List[HexDayCell]:
    """
    Set registered_hotspots and density_k1 on every grid row.

    Rows sharing a cell id get identical values regardless of date.
    Rows are updated in place and returned.
    """
    cache = {} if cache is None else cache
    for cell in cells:
        if cell.hex not in cache:
            cache[cell.hex] = density_k1(cell.hex, index)
        cell.registered_hotspots = index.count(cell.hex)
        cell.density_k1 = cache[cell.hex]
    return cells
