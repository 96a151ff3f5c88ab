# ============================================================================
# H3 AGGREGATION BASE UTILITIES
# ============================================================================
# STATUS: Service Utilities - H3 Aggregation Shared Code
# PURPOSE: Common utilities for the reward grid services
# EXPORTS: validate_resolution, resolve_resolution, cell_centroid, valid_coordinates
# DEPENDENCIES: h3
# ============================================================================
"""
H3 Aggregation Base Utilities.

Provides shared functions for the grid pipeline and query services:
- Resolution validation
- Cached cell centroids
- Coordinate validity checks

Usage:
    from services.h3_aggregation.base import validate_resolution, cell_centroid

    validate_resolution(9)
    lat, lon = cell_centroid("8928308280fffff")
"""

from functools import lru_cache
from typing import Any, Optional, Tuple

import h3

from exceptions import ValidationError
from infrastructure.hotspot_registry import valid_coordinates


def validate_resolution(resolution: Any) -> int:
    """
    Validate H3 resolution is in valid range.

    Parameters:
    ----------
    resolution : int
        H3 resolution level (numeric strings accepted)

    Returns:
    -------
    int
        The resolution as an int

    Raises:
    ------
    ValidationError
        If resolution is not an integer in 0-15
    """
    if isinstance(resolution, bool):
        raise ValidationError(f"H3 resolution must be 0-15, got: {resolution!r}")
    try:
        value = int(resolution)
    except (TypeError, ValueError):
        raise ValidationError(f"H3 resolution must be 0-15, got: {resolution!r}")
    if value != resolution and str(value) != str(resolution).strip():
        raise ValidationError(f"H3 resolution must be an integer, got: {resolution!r}")
    if value < 0 or value > 15:
        raise ValidationError(f"H3 resolution must be 0-15, got: {resolution}")
    return value


def resolve_resolution(resolution: Optional[Any], default: int) -> int:
    """Validated resolution, falling back to the configured default."""
    return validate_resolution(default if resolution is None else resolution)


@lru_cache(maxsize=65536)
def cell_centroid(cell: str) -> Tuple[float, float]:
    """
    Centroid of an H3 cell as (lat, lon).

    Cached: the same cell recurs once per day in a grid table.
    """
    lat, lon = h3.cell_to_latlng(cell)
    return float(lat), float(lon)


__all__ = [
    'validate_resolution',
    'resolve_resolution',
    'cell_centroid',
    'valid_coordinates',
]
