"""
Pure Enumeration Types for the Reward Grid.

Closed vocabularies for measures, query modes and scenario aggregation.
No business logic - pure type definitions only.

Exports:
    MeasureField: Selectable numeric grid column
    AggregationMode: How forecast days are combined per cell
    QueryMode: Observed history vs forecast scenario
    ForecastCategory: Reward categories a scenario multiplier applies to
"""

from enum import Enum


class MeasureField(str, Enum):
    """
    Numeric grid columns a caller may select as the "selected" total.

    Closed set: every variant has an accessor in core.models.grid, so no
    code path reads a row attribute by an arbitrary request string.
    """

    BEACON = "beacon"
    WITNESS = "witness"
    DC_TRANSFER = "dc_transfer"
    POC_REWARDS = "poc_rewards"
    TOTAL_REWARDS = "total_rewards"
    HOTSPOT_COUNT = "hotspot_count"
    REGISTERED_HOTSPOTS = "registered_hotspots"
    DENSITY_K1 = "density_k1"
    MA_3D_TOTAL = "ma_3d_total"
    MA_3D_POC = "ma_3d_poc"
    TRANSMIT_SCALE_APPROX = "transmit_scale_approx"


class AggregationMode(str, Enum):
    """
    How per-day forecast values combine into one value per cell.

    - SUM: total over the horizon
    - AVERAGE: total divided by the horizon length
    - DAY: a single day picked by offset, no cross-day combination
    """

    SUM = "sum"
    AVERAGE = "average"
    DAY = "day"


class QueryMode(str, Enum):
    """Grid query mode."""

    OBSERVED = "observed"
    FORECAST = "forecast"


class ForecastCategory(str, Enum):
    """Reward categories with an independent scenario multiplier."""

    POC = "poc"
    DATA = "data"
