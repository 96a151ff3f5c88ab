# ============================================================================
# SCENARIO AGGREGATOR
# ============================================================================
# STATUS: Service - forecast scenario combination
# PURPOSE: Scale forecasts per reward category and combine them per cell
# EXPORTS: aggregate_scenario, adjust_row, AdjustedDay
# ============================================================================
"""
Scenario Aggregator.

For every selected cell and every forecast day in the window:

    adjusted_poc = poc_multiplier  × forecasted_poc
    adjusted_dc  = data_multiplier × forecasted_dc
    adjusted     = adjusted_poc + adjusted_dc
                   (forecasted_total when the row has no category breakdown)
    base         = forecasted_total, else forecasted_poc + forecasted_dc
    ratio        = adjusted / base   (1 when base <= 0)
    bands        = lower_band × ratio, upper_band × ratio

Bands are published against the unadjusted total, so rescaling by ratio
keeps their relative width after a scenario is applied.

Per-cell combination (first horizon_days rows of the cell, by date):
    sum      Σ adjusted, Σ bands
    average  Σ / horizon_days
    day      the day_offset-th row only (clamped to the rows available)

A pure function of its inputs. Empty selections or windows give an empty
result with zeroed totals.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from core.models import (
    AggregationMode,
    CellContext,
    CellForecast,
    ForecastCategory,
    ForecastRow,
    ScenarioParams,
    ScenarioResult,
)
from services.h3_aggregation.base import cell_centroid

MAX_RELATIVE_UNCERTAINTY = 1.5

TOTAL_KEYS = ("value", "lower_band", "upper_band", "hotspot_count", "density_k1")


@dataclass
class AdjustedDay:
    """One forecast day after scenario adjustment."""

    date: str
    value: float
    lower_band: float
    upper_band: float


def adjust_row(row: ForecastRow, params: ScenarioParams) -> AdjustedDay:
    """
    Apply category multipliers to one forecast row and rescale its bands.
    """
    if row.has_breakdown:
        adjusted = (
            params.multiplier(ForecastCategory.POC) * (row.forecasted_poc or 0.0)
            + params.multiplier(ForecastCategory.DATA) * (row.forecasted_dc or 0.0)
        )
    else:
        adjusted = row.forecasted_total or 0.0

    base = row.effective_total
    ratio = adjusted / base if base > 0 else 1.0
    return AdjustedDay(
        date=row.date,
        value=adjusted,
        lower_band=(row.lower_band or 0.0) * ratio,
        upper_band=(row.upper_band or 0.0) * ratio,
    )


def relative_uncertainty(value: float, lower: float, upper: float) -> float:
    """(upper - lower) / value clamped to [0, 1.5]; 0 for non-positive values."""
    if value <= 0:
        return 0.0
    return max(0.0, min(MAX_RELATIVE_UNCERTAINTY, (upper - lower) / value))


def _combine(days: List[AdjustedDay], params: ScenarioParams) -> Optional[AdjustedDay]:
    if not days:
        return None

    if params.aggregation == AggregationMode.DAY:
        index = min(max(1, params.day_offset), min(params.horizon_days, len(days))) - 1
        return days[index]

    value = sum(d.value for d in days)
    lower = sum(d.lower_band for d in days)
    upper = sum(d.upper_band for d in days)
    if params.aggregation == AggregationMode.AVERAGE:
        value /= params.horizon_days
        lower /= params.horizon_days
        upper /= params.horizon_days
    return AdjustedDay(date=days[0].date, value=value, lower_band=lower, upper_band=upper)


def aggregate_scenario(
    cell_ids: Iterable[str],
    forecast_rows: Iterable[ForecastRow],
    context: Mapping[str, CellContext],
    params: ScenarioParams
) -> ScenarioResult:
    """
    Combine forecast rows for a cell selection under a scenario.

    Args:
        cell_ids: Selected cells
        forecast_rows: Forecast rows (rows for other cells are ignored)
        context: Static per-cell facts (centroid, hotspot_count, density_k1)
        params: Scenario parameters

    Returns:
        ScenarioResult with one CellForecast per selected cell that has at
        least one forecast row, ordered by cell id
    """
    selected = set(cell_ids)
    per_cell: Dict[str, List[ForecastRow]] = defaultdict(list)
    for row in forecast_rows:
        if row.hex in selected and row.has_forecast:
            per_cell[row.hex].append(row)

    cells: List[CellForecast] = []
    for hex_id in sorted(per_cell):
        rows = sorted(per_cell[hex_id], key=lambda r: r.date)[:params.horizon_days]
        days = [adjust_row(r, params) for r in rows]
        combined = _combine(days, params)
        if combined is None:
            continue

        ctx = context.get(hex_id)
        if ctx is None:
            lat, lon = cell_centroid(hex_id)
            ctx = CellContext(hex=hex_id, lat=lat, lon=lon)

        cells.append(CellForecast(
            hex=hex_id,
            lat=ctx.lat,
            lon=ctx.lon,
            value=combined.value,
            lower_band=combined.lower_band,
            upper_band=combined.upper_band,
            relative_uncertainty=relative_uncertainty(
                combined.value, combined.lower_band, combined.upper_band
            ),
            hotspot_count=ctx.hotspot_count,
            density_k1=ctx.density_k1,
            days=1 if params.aggregation == AggregationMode.DAY else len(days),
        ))

    totals = {key: 0.0 for key in TOTAL_KEYS}
    for cell in cells:
        totals["value"] += cell.value
        totals["lower_band"] += cell.lower_band
        totals["upper_band"] += cell.upper_band
        totals["hotspot_count"] += cell.hotspot_count
        totals["density_k1"] += cell.density_k1

    return ScenarioResult(cells=cells, totals=totals, cell_count=len(cells))
