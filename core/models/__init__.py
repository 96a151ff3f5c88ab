"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    MeasureField, AggregationMode, QueryMode, ForecastCategory: Enums
    CanonicalDailyRow, HotspotLocation: Reward input models
    HexDayCell, HexStaticIndex, measure_value: Grid models
    ForecastRow, CellContext, ScenarioParams, CellForecast, ScenarioResult: Forecast models
    RegionPolygon, GridQueryRequest, GridQueryResponse, GridTableStatus: Query models
    NormalizationStats, AggregationStats: Stage counters
"""

# Enums
from .enums import (
    MeasureField,
    AggregationMode,
    QueryMode,
    ForecastCategory
)

# Reward models
from .rewards import CanonicalDailyRow, HotspotLocation

# Grid models
from .grid import (
    HexDayCell,
    HexStaticIndex,
    GRID_TABLE_COLUMNS,
    MEASURE_ACCESSORS,
    measure_value
)

# Forecast models
from .forecast import (
    ForecastRow,
    CellContext,
    ScenarioParams,
    CellForecast,
    ScenarioResult
)

# Query models
from .query import (
    RegionPolygon,
    GridQueryRequest,
    GridQueryResponse,
    GridTableStatus
)

# Stage counters
from .results import NormalizationStats, AggregationStats

__all__ = [
    'MeasureField',
    'AggregationMode',
    'QueryMode',
    'ForecastCategory',
    'CanonicalDailyRow',
    'HotspotLocation',
    'HexDayCell',
    'HexStaticIndex',
    'GRID_TABLE_COLUMNS',
    'MEASURE_ACCESSORS',
    'measure_value',
    'ForecastRow',
    'CellContext',
    'ScenarioParams',
    'CellForecast',
    'ScenarioResult',
    'RegionPolygon',
    'GridQueryRequest',
    'GridQueryResponse',
    'GridTableStatus',
    'NormalizationStats',
    'AggregationStats',
]
