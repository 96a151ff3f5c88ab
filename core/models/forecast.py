"""
Forecast and Scenario Data Models.

Forecast rows are produced by an external model and only read here. A
scenario scales them per reward category and combines them per cell.

Exports:
    ForecastRow: One cell's forecast for one day
    CellContext: Static per-cell facts carried into the scenario output
    ScenarioParams: Multipliers, aggregation mode, horizon, day offset
    CellForecast: One scenario output row
    ScenarioResult: Scenario output rows and totals
"""

import math
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from config.defaults import ServingDefaults
from .enums import AggregationMode, ForecastCategory


class ForecastRow(BaseModel):
    """
    One cell's forecast for one day.

    Any of the values may be absent; a row with none of them carries no
    forecast and is ignored by the scenario aggregator.
    """

    date: str
    hex: str
    forecasted_poc: Optional[float] = None
    forecasted_dc: Optional[float] = None
    forecasted_total: Optional[float] = None
    lower_band: Optional[float] = None
    upper_band: Optional[float] = None

    @property
    def has_breakdown(self) -> bool:
        """True when at least one category value is present."""
        return self.forecasted_poc is not None or self.forecasted_dc is not None

    @property
    def has_forecast(self) -> bool:
        return self.has_breakdown or self.forecasted_total is not None

    @property
    def effective_total(self) -> float:
        """Supplied total, else poc + dc."""
        if self.forecasted_total is not None:
            return self.forecasted_total
        return (self.forecasted_poc or 0.0) + (self.forecasted_dc or 0.0)


class CellContext(BaseModel):
    """Static per-cell facts from the grid table."""

    hex: str
    lat: float = 0.0
    lon: float = 0.0
    hotspot_count: int = 0
    density_k1: int = 0


class ScenarioParams(BaseModel):
    """
    Scenario controls.

    horizon_days and day_offset are clamped into 1..MAX_HORIZON_DAYS
    rather than rejected.
    """

    poc_multiplier: float = Field(default=1.0, allow_inf_nan=False)
    data_multiplier: float = Field(default=1.0, allow_inf_nan=False)
    aggregation: AggregationMode = AggregationMode.SUM
    horizon_days: int = ServingDefaults.MAX_HORIZON_DAYS
    day_offset: int = 1

    @field_validator('horizon_days', 'day_offset', mode='before')
    @classmethod
    def clamp_days(cls, v):
        if v is None:
            return 1
        v = int(v)
        return max(1, min(ServingDefaults.MAX_HORIZON_DAYS, v))

    @field_validator('poc_multiplier', 'data_multiplier', mode='before')
    @classmethod
    def default_multiplier(cls, v):
        if v is None:
            return 1.0
        v = float(v)
        if not math.isfinite(v):
            raise ValueError("multiplier must be finite")
        return v

    def multiplier(self, category: ForecastCategory) -> float:
        """Multiplier applied to one forecast category."""
        if category == ForecastCategory.POC:
            return self.poc_multiplier
        return self.data_multiplier


class CellForecast(BaseModel):
    """One scenario output row."""

    hex: str
    lat: float
    lon: float
    value: float
    lower_band: float
    upper_band: float
    relative_uncertainty: float
    hotspot_count: int
    density_k1: int
    days: int


class ScenarioResult(BaseModel):
    """Scenario output; empty inputs give no cells and zeroed totals."""

    cells: List[CellForecast] = Field(default_factory=list)
    totals: Dict[str, float] = Field(default_factory=dict)
    cell_count: int = 0
