"""
Grid Query Data Models.

Request and response shapes for observed-history and forecast-scenario
queries over the persisted grid table.

Exports:
    RegionPolygon: Free-hand selection polygon
    GridQueryRequest: Query parameters
    GridTableStatus: Freshness info for the returned rows
    GridQueryResponse: Query result
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import MeasureField, QueryMode
from .forecast import CellForecast, ScenarioParams
from .grid import HexDayCell
from .rewards import DATE_PATTERN


class RegionPolygon(BaseModel):
    """
    Ordered (lat, lon) vertices; the ring closes implicitly.

    Fewer than 3 vertices is not a selection.
    """

    vertices: List[Tuple[float, float]] = Field(default_factory=list)

    @property
    def is_selection(self) -> bool:
        return len(self.vertices) >= 3


class GridQueryRequest(BaseModel):
    """
    Grid query parameters.

    Observed mode returns grid rows within [date_from, date_to]; forecast
    mode returns one scenario row per selected cell.
    """

    resolution: Optional[int] = Field(default=None, ge=0, le=15)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    hexes: List[str] = Field(default_factory=list)
    polygon: Optional[RegionPolygon] = None
    mode: QueryMode = QueryMode.OBSERVED
    field: MeasureField = MeasureField.TOTAL_REWARDS
    limit: Optional[int] = Field(default=None, ge=1)
    start_date: Optional[str] = Field(
        default=None,
        description="First forecast day (defaults to today, UTC)"
    )
    scenario: ScenarioParams = Field(default_factory=ScenarioParams)

    @field_validator('date_from', 'date_to', 'start_date')
    @classmethod
    def validate_dates(cls, v):
        if v is not None and not DATE_PATTERN.match(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        return v

    @field_validator('hexes')
    @classmethod
    def strip_hexes(cls, v):
        return [h.strip() for h in v if h and h.strip()]

    @property
    def has_selection(self) -> bool:
        """True when a hex list or a usable polygon narrows the query."""
        return bool(self.hexes) or (self.polygon is not None and self.polygon.is_selection)


class GridTableStatus(BaseModel):
    """Freshness of the table the response was read from."""

    model_config = ConfigDict(
        json_encoders={datetime: lambda v: v.isoformat()}
    )

    last_updated: Optional[datetime] = None
    first_date: Optional[str] = None
    last_date: Optional[str] = None
    forecast_through: Optional[str] = Field(
        default=None,
        description="Last day the forecast file covers (forecast mode only)"
    )


class GridQueryResponse(BaseModel):
    """Grid query result."""

    ok: bool = True
    mode: QueryMode
    resolution: int
    rows: List[HexDayCell] = Field(default_factory=list)
    cells: List[CellForecast] = Field(default_factory=list)
    totals: Dict[str, float] = Field(default_factory=dict)
    cell_count: int = 0
    status: GridTableStatus = Field(default_factory=GridTableStatus)
    filters: Dict[str, Any] = Field(default_factory=dict)
