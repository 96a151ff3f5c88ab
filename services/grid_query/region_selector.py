"""
Region Selector.

Narrows a set of candidate cells (id -> centroid) to a selection: an
explicit list of cell ids, or the cells whose centroid lies strictly
inside a free-hand polygon. Centroids on the polygon boundary are not
selected.

A polygon with fewer than three vertices selects nothing.
"""

from typing import Iterable, List, Mapping, Sequence, Tuple, Union

from core.logic import bounding_box, in_bounding_box, point_in_polygon
from core.models import CellContext, RegionPolygon
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RegionSelector")

LatLon = Tuple[float, float]
Candidate = Union[CellContext, LatLon]
PolygonLike = Union[RegionPolygon, Sequence[LatLon]]


def _centroid(value: Candidate) -> LatLon:
    if isinstance(value, CellContext):
        return value.lat, value.lon
    return float(value[0]), float(value[1])


def _vertices(polygon: PolygonLike) -> List[LatLon]:
    if isinstance(polygon, RegionPolygon):
        return list(polygon.vertices)
    return [(float(v[0]), float(v[1])) for v in polygon]


class RegionSelector:
    """Cell selection by id list or polygon."""

    def select_cells(self, cell_ids: Iterable[str], candidates: Mapping[str, Candidate]) -> List[str]:
        """
        Exact membership: requested ids that exist among the candidates.

        Returns:
            Selected ids, sorted
        """
        wanted = {c for c in cell_ids if c}
        return sorted(c for c in wanted if c in candidates)

    def prefilter(self, polygon: PolygonLike, candidates: Mapping[str, Candidate]) -> List[str]:
        """
        Candidates whose centroid falls inside the polygon's bounding box.

        Inclusive, so it is always a superset of select_polygon().
        """
        vertices = _vertices(polygon)
        bbox = bounding_box(vertices)
        if bbox is None:
            return []
        return sorted(
            hex_id for hex_id, value in candidates.items()
            if in_bounding_box(_centroid(value), bbox)
        )

    def select_polygon(self, polygon: PolygonLike, candidates: Mapping[str, Candidate]) -> List[str]:
        """
        Cells whose centroid lies strictly inside the polygon.

        Args:
            polygon: (lat, lon) ring, implicitly closed
            candidates: Cell id -> centroid (CellContext or (lat, lon))

        Returns:
            Selected ids, sorted; [] for fewer than 3 vertices
        """
        vertices = _vertices(polygon)
        if len(vertices) < 3:
            return []

        coarse = self.prefilter(vertices, candidates)
        selected = [
            hex_id for hex_id in coarse
            if point_in_polygon(_centroid(candidates[hex_id]), vertices)
        ]
        logger.debug(
            f"Polygon selection: {len(selected)} of {len(coarse)} prefiltered "
            f"({len(candidates)} candidates)"
        )
        return selected
