"""
Core Business Logic Package.

Pure functions that operate on plain values and the core data models.
Separated from models to maintain clean architecture.

Exports:
    Calculations: round_half_up, trailing_mean, transmit_scale
    Geometry: bounding_box, in_bounding_box, point_in_polygon, point_on_boundary, polygon_area_km2
"""

from .calculations import (
    round_half_up,
    trailing_mean,
    transmit_scale
)

from .geometry import (
    BoundingBox,
    BOUNDARY_EPSILON,
    bounding_box,
    in_bounding_box,
    point_on_boundary,
    point_in_polygon,
    polygon_area_km2
)

__all__ = [
    # Calculations
    'round_half_up',
    'trailing_mean',
    'transmit_scale',

    # Geometry
    'BoundingBox',
    'BOUNDARY_EPSILON',
    'bounding_box',
    'in_bounding_box',
    'point_on_boundary',
    'point_in_polygon',
    'polygon_area_km2',
]
