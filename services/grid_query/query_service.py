# ============================================================================
# GRID QUERY SERVICE
# ============================================================================
# STATUS: Service - observed history and forecast scenario queries
# PURPOSE: Resolve a GridQueryRequest against the grid and forecast tables
# EXPORTS: GridQueryService
# DEPENDENCIES: infrastructure repositories (injected)
# ============================================================================
"""
Grid Query Service.

Two query modes over the persisted tables:

    observed
        Grid rows within [date_from, date_to], optionally narrowed to a hex
        list and/or a polygon. No selection returns all cells, capped at the
        row limit.

    forecast
        One scenario row per selected cell over
        [start_date, start_date + horizon_days - 1]. Requires a selection;
        without one the result is empty.

The service holds only the repository handles it was built with. Every
query reads the tables from disk, so a refresh that completed before the
query started is always visible.

Usage:
    service = GridQueryService(grid_repo, forecast_repo, config)
    response = service.query(GridQueryRequest(resolution=8, hexes=[...]))
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from config import AppConfig, get_config
from core.logic import polygon_area_km2
from core.models import (
    GridQueryRequest,
    GridQueryResponse,
    GridTableStatus,
    HexDayCell,
    MeasureField,
    QueryMode,
    measure_value,
)
from util_logger import LoggerFactory, ComponentType
from services.h3_aggregation.base import resolve_resolution
from .cancellation import CancellationToken, QueryDebouncer
from .region_selector import RegionSelector
from .scenario import aggregate_scenario

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "GridQueryService")

# Per-row columns summed into observed totals
OBSERVED_TOTAL_FIELDS = [field for field in MeasureField]


def _checkpoint(token: Optional[CancellationToken], where: str) -> None:
    if token is not None:
        token.raise_if_cancelled(where)


def observed_totals(rows: List[HexDayCell], field: MeasureField) -> Dict[str, float]:
    """
    Sums of every numeric column, plus "rows" and "selected".

    Unset moving averages count as 0.
    """
    totals: Dict[str, float] = {f.value: 0.0 for f in OBSERVED_TOTAL_FIELDS}
    for row in rows:
        for f in OBSERVED_TOTAL_FIELDS:
            totals[f.value] += measure_value(row, f)
    totals["rows"] = float(len(rows))
    totals["selected"] = totals[field.value]
    return totals


class GridQueryService:
    """
    Answers grid queries from the persisted tables.

    Args:
        grid_repository: GridTableRepository (or compatible)
        forecast_repository: ForecastRepository (or compatible)
        config: Application configuration (defaults to get_config())
        selector: RegionSelector (defaults to a new one)
    """

    def __init__(
        self,
        grid_repository,
        forecast_repository,
        config: Optional[AppConfig] = None,
        selector: Optional[RegionSelector] = None
    ):
        self.grid = grid_repository
        self.forecasts = forecast_repository
        self.config = config or get_config()
        self.selector = selector or RegionSelector()

    def query(
        self,
        request: GridQueryRequest,
        token: Optional[CancellationToken] = None
    ) -> GridQueryResponse:
        """
        Run a grid query.

        Args:
            request: Query parameters
            token: Optional cancellation token, checked before and after
                every table read

        Raises:
            ValidationError: Invalid resolution
            GridTableNotFoundError: No grid table for the resolution
            QueryCancelledError: Token cancelled mid-query
        """
        resolution = resolve_resolution(request.resolution, self.config.h3.default_resolution)
        if request.mode == QueryMode.FORECAST:
            return self._forecast(request, resolution, token)
        return self._observed(request, resolution, token)

    def debouncer(
        self,
        on_result: Callable[[GridQueryResponse], None],
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> QueryDebouncer:
        """
        Debouncer that runs this service's queries after the configured
        quiet period (ServingConfig.debounce_seconds).
        """
        return QueryDebouncer(
            run=lambda request, token: self.query(request, token=token),
            on_result=on_result,
            delay_seconds=self.config.serving.debounce_seconds,
            on_error=on_error,
        )

    # ========================================================================
    # SELECTION
    # ========================================================================

    def _selection(
        self,
        request: GridQueryRequest,
        resolution: int,
        token: Optional[CancellationToken]
    ) -> Optional[List[str]]:
        """
        Cells named by the request: hex list union polygon cells.

        Both parts are resolved against the cells present in the grid
        table, so unknown ids never reach a table read. Returns None when
        the request has no selection.
        """
        if not request.has_selection:
            return None

        _checkpoint(token, "before cell index read")
        index = self.grid.read_cell_index(resolution)
        _checkpoint(token, "after cell index read")

        selected = set(self.selector.select_cells(request.hexes, index))
        if len(selected) < len(set(request.hexes)):
            logger.debug(
                f"Dropped {len(set(request.hexes)) - len(selected)} hex ids not in the r{resolution} table"
            )
        if request.polygon is not None and request.polygon.is_selection:
            inside = self.selector.select_polygon(request.polygon, index)
            logger.debug(f"Polygon selected {len(inside)} of {len(index)} cells")
            selected.update(inside)
        return sorted(selected)

    def _filters(self, request: GridQueryRequest, resolution: int, **extra) -> Dict:
        filters = {
            "resolution": resolution,
            "mode": request.mode.value,
            "from": request.date_from,
            "to": request.date_to,
            "hexes": len(request.hexes),
            "polygon_vertices": len(request.polygon.vertices) if request.polygon else 0,
            "field": request.field.value,
        }
        if request.polygon is not None and request.polygon.is_selection:
            filters["polygon_area_km2"] = round(polygon_area_km2(request.polygon.vertices), 3)
        filters.update(extra)
        return filters

    # ========================================================================
    # OBSERVED
    # ========================================================================

    def _observed(
        self,
        request: GridQueryRequest,
        resolution: int,
        token: Optional[CancellationToken]
    ) -> GridQueryResponse:
        serving = self.config.serving
        limit = min(request.limit or serving.default_row_limit, serving.max_row_limit)

        selection = self._selection(request, resolution, token)

        _checkpoint(token, "before grid read")
        rows = self.grid.read_cells(
            resolution,
            date_from=request.date_from,
            date_to=request.date_to,
            hexes=selection,
            limit=limit,
        )
        last_updated = self.grid.last_modified(resolution)
        _checkpoint(token, "after grid read")

        logger.info(
            f"Observed query r{resolution}: {len(rows)} rows "
            f"(selection={'all' if selection is None else len(selection)}, limit={limit})"
        )

        return GridQueryResponse(
            mode=QueryMode.OBSERVED,
            resolution=resolution,
            rows=rows,
            totals=observed_totals(rows, request.field),
            cell_count=len({row.hex for row in rows}),
            status=GridTableStatus(
                last_updated=last_updated,
                first_date=min((r.date for r in rows), default=None),
                last_date=max((r.date for r in rows), default=None),
            ),
            filters=self._filters(request, resolution, limit=limit),
        )

    # ========================================================================
    # FORECAST
    # ========================================================================

    def _window(self, request: GridQueryRequest) -> tuple:
        horizon = min(request.scenario.horizon_days, self.config.serving.max_horizon_days)
        if request.start_date:
            start = date.fromisoformat(request.start_date)
        else:
            start = datetime.now(timezone.utc).date()
        end = start + timedelta(days=horizon - 1)
        return horizon, start.isoformat(), end.isoformat()

    def _forecast(
        self,
        request: GridQueryRequest,
        resolution: int,
        token: Optional[CancellationToken]
    ) -> GridQueryResponse:
        horizon, start, end = self._window(request)
        params = request.scenario.model_copy(update={"horizon_days": horizon})
        filters = self._filters(
            request,
            resolution,
            start=start,
            end=end,
            scenario=params.model_dump(mode="json"),
        )

        _checkpoint(token, "before table status")
        last_updated = self.grid.last_modified(resolution)
        forecast_through = self.forecasts.latest_date(resolution)

        selection = self._selection(request, resolution, token)
        if not selection:
            logger.info(f"Forecast query r{resolution}: no selection")
            empty = aggregate_scenario([], [], {}, params)
            return GridQueryResponse(
                mode=QueryMode.FORECAST,
                resolution=resolution,
                totals=empty.totals,
                status=GridTableStatus(
                    last_updated=last_updated,
                    first_date=start,
                    last_date=end,
                    forecast_through=forecast_through,
                ),
                filters=filters,
            )

        _checkpoint(token, "before cell index read")
        context = self.grid.read_cell_index(resolution, hexes=selection)
        _checkpoint(token, "before forecast read")
        forecast_rows = self.forecasts.read_rows(resolution, selection, start, end)
        _checkpoint(token, "after forecast read")

        result = aggregate_scenario(selection, forecast_rows, context, params)
        logger.info(
            f"Forecast query r{resolution}: {result.cell_count} of {len(selection)} cells "
            f"({params.aggregation.value}, {start}..{end})"
        )

        return GridQueryResponse(
            mode=QueryMode.FORECAST,
            resolution=resolution,
            cells=result.cells,
            totals=result.totals,
            cell_count=result.cell_count,
            status=GridTableStatus(
                last_updated=last_updated,
                first_date=start,
                last_date=end,
                forecast_through=forecast_through,
            ),
            filters=filters,
        )
