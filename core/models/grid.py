"""
Grid Data Models.

One persisted grid row per (date, cell, resolution), the static per-cell
registry index, and the accessor table for selectable measures.

Exports:
    HexDayCell: Aggregated rewards for one cell on one day
    HexStaticIndex: Registry hotspot counts and ring-1 neighbors per cell
    GRID_TABLE_COLUMNS: Persisted column order
    MEASURE_ACCESSORS: MeasureField -> reader
    measure_value: Read a measure from a HexDayCell
"""

from typing import Callable, Dict, List, Optional
from pydantic import BaseModel, Field

from .enums import MeasureField


class HexDayCell(BaseModel):
    """
    Aggregated rewards for one H3 cell on one day.

    Unique per (date, hex, res). Reward amounts are integral bones after
    emission rounding; lat/lon are the cell centroid.
    """

    date: str = Field(..., description="Reward day (YYYY-MM-DD)")
    hex: str = Field(..., description="H3 cell id")
    res: int = Field(..., ge=0, le=15, description="H3 resolution")
    lat: float = Field(..., description="Cell centroid latitude")
    lon: float = Field(..., description="Cell centroid longitude")

    beacon: float = 0.0
    witness: float = 0.0
    dc_transfer: float = 0.0
    poc_rewards: float = 0.0
    total_rewards: float = 0.0

    hotspot_count: int = Field(default=0, ge=0, description="Distinct hotspots rewarded that day")
    registered_hotspots: int = Field(default=0, ge=0, description="Registry hotspots located in the cell")
    density_k1: int = Field(default=0, ge=0, description="Registry hotspots in the cell and its ring-1 neighbors")

    ma_3d_total: Optional[float] = None
    ma_3d_poc: Optional[float] = None
    transmit_scale_approx: float = 0.0


GRID_TABLE_COLUMNS = [
    "date", "hex", "res", "lat", "lon",
    "beacon", "witness", "dc_transfer", "poc_rewards", "total_rewards",
    "hotspot_count", "registered_hotspots", "density_k1",
    "ma_3d_total", "ma_3d_poc", "transmit_scale_approx",
]


class HexStaticIndex(BaseModel):
    """
    Registry-derived per-cell facts, built once per resolution.

    counts: hotspots located in each cell
    neighbors: ring neighbors of each registry cell (cell itself excluded)
    """

    resolution: int = Field(..., ge=0, le=15)
    ring: int = Field(default=1, ge=1)
    counts: Dict[str, int] = Field(default_factory=dict)
    neighbors: Dict[str, List[str]] = Field(default_factory=dict)

    def count(self, cell: str) -> int:
        return self.counts.get(cell, 0)


# ============================================================================
# MEASURE ACCESSORS
# ============================================================================

MEASURE_ACCESSORS: Dict[MeasureField, Callable[[HexDayCell], float]] = {
    MeasureField.BEACON: lambda c: c.beacon,
    MeasureField.WITNESS: lambda c: c.witness,
    MeasureField.DC_TRANSFER: lambda c: c.dc_transfer,
    MeasureField.POC_REWARDS: lambda c: c.poc_rewards,
    MeasureField.TOTAL_REWARDS: lambda c: c.total_rewards,
    MeasureField.HOTSPOT_COUNT: lambda c: c.hotspot_count,
    MeasureField.REGISTERED_HOTSPOTS: lambda c: c.registered_hotspots,
    MeasureField.DENSITY_K1: lambda c: c.density_k1,
    MeasureField.MA_3D_TOTAL: lambda c: c.ma_3d_total or 0.0,
    MeasureField.MA_3D_POC: lambda c: c.ma_3d_poc or 0.0,
    MeasureField.TRANSMIT_SCALE_APPROX: lambda c: c.transmit_scale_approx,
}


def measure_value(cell: HexDayCell, field: MeasureField) -> float:
    """
    Read a selectable measure from a grid row.

    Args:
        cell: Grid row
        field: Measure to read

    Returns:
        Measure value (unset moving averages read as 0)
    """
    return float(MEASURE_ACCESSORS[field](cell))
