# ============================================================================
# REGION GEOMETRY
# ============================================================================
# STATUS: Core - Pure geometry functions
# PURPOSE: Bounding boxes, point-in-polygon, approximate polygon area
# ============================================================================
"""
Region Geometry.

Planar geometry on (lat, lon) degree pairs. Longitude is the x axis and
latitude the y axis. Polygons are vertex lists with an implicit closing
edge and no antimeridian handling.

Boundary policy:
    A point on an edge or vertex (within BOUNDARY_EPSILON degrees) is
    OUTSIDE. Selections therefore contain only strictly interior points,
    whatever the polygon's orientation.

Exports:
    BoundingBox: (min_lat, min_lon, max_lat, max_lon)
    bounding_box: Axis-aligned bounds of a vertex list
    in_bounding_box: Inclusive box test
    point_on_boundary: Edge/vertex test
    point_in_polygon: Even-odd ray casting with boundary exclusion
    polygon_area_km2: Equirectangular shoelace area
"""

import math
from typing import NamedTuple, Optional, Sequence, Tuple

LatLon = Tuple[float, float]

BOUNDARY_EPSILON = 1e-12
EARTH_RADIUS_KM = 6371.0


class BoundingBox(NamedTuple):
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float


def bounding_box(vertices: Sequence[LatLon]) -> Optional[BoundingBox]:
    """Bounds of a vertex list, or None when it is empty."""
    if not vertices:
        return None
    lats = [v[0] for v in vertices]
    lons = [v[1] for v in vertices]
    return BoundingBox(min(lats), min(lons), max(lats), max(lons))


def in_bounding_box(point: LatLon, bbox: BoundingBox) -> bool:
    """Inclusive test, so it never rejects a point the exact test accepts."""
    lat, lon = point
    return bbox.min_lat <= lat <= bbox.max_lat and bbox.min_lon <= lon <= bbox.max_lon


def _on_segment(x: float, y: float, x1: float, y1: float, x2: float, y2: float) -> bool:
    dx = x2 - x1
    dy = y2 - y1
    length = math.hypot(dx, dy)
    if length <= BOUNDARY_EPSILON:
        return math.hypot(x - x1, y - y1) <= BOUNDARY_EPSILON

    # Perpendicular distance to the supporting line
    if abs((x - x1) * dy - (y - y1) * dx) / length > BOUNDARY_EPSILON:
        return False

    # Projection must fall within the segment
    t = ((x - x1) * dx + (y - y1) * dy) / (length * length)
    slack = BOUNDARY_EPSILON / length
    return -slack <= t <= 1 + slack


def point_on_boundary(point: LatLon, vertices: Sequence[LatLon]) -> bool:
    """True when the point lies on any edge (closing edge included)."""
    lat, lon = point
    n = len(vertices)
    for i in range(n):
        lat1, lon1 = vertices[i]
        lat2, lon2 = vertices[(i + 1) % n]
        if _on_segment(lon, lat, lon1, lat1, lon2, lat2):
            return True
    return False


def point_in_polygon(point: LatLon, vertices: Sequence[LatLon]) -> bool:
    """
    Even-odd ray casting with boundary points excluded.

    Args:
        point: (lat, lon)
        vertices: Polygon ring as (lat, lon) pairs, not repeated at the end

    Returns:
        True only for strictly interior points; always False for fewer
        than 3 vertices
    """
    if len(vertices) < 3:
        return False
    if point_on_boundary(point, vertices):
        return False

    y, x = point
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        yi, xi = vertices[i]
        yj, xj = vertices[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def polygon_area_km2(vertices: Sequence[LatLon]) -> float:
    """
    Approximate polygon area in km².

    Projects with an equirectangular approximation anchored at the first
    vertex's latitude, then applies the shoelace formula. Good enough for
    region summaries a few hundred km across.
    """
    if len(vertices) < 3:
        return 0.0
    cos_lat0 = math.cos(math.radians(vertices[0][0]))
    total = 0.0
    n = len(vertices)
    for i in range(n):
        lat1, lon1 = vertices[i]
        lat2, lon2 = vertices[(i + 1) % n]
        x1 = math.radians(lon1) * cos_lat0
        y1 = math.radians(lat1)
        x2 = math.radians(lon2) * cos_lat0
        y2 = math.radians(lat2)
        total += x1 * y2 - x2 * y1
    return abs(total) * 0.5 * EARTH_RADIUS_KM * EARTH_RADIUS_KM
