"""
GridQueryService tests.

Observed and forecast modes against real Parquet tables in a temporary
data directory, selection by hex list and polygon, limits, totals, and
cooperative cancellation.
"""

import threading
from datetime import date, timedelta

import h3
import pandas as pd
import pytest

from core.models import (
    AggregationMode,
    GridQueryRequest,
    MeasureField,
    QueryMode,
    RegionPolygon,
    ScenarioParams,
)
from exceptions import GridTableNotFoundError, QueryCancelledError, ValidationError
from infrastructure.forecast_repository import ForecastRepository
from infrastructure.grid_table_repository import GridTableRepository
from services.grid_query import CancellationToken, GridQueryService
from services.h3_aggregation import build_grid_cells
from services.ingest import normalize_batch
from tests.factories.reward_factories import base_cell, make_rows_for_cells

RES = 8
START = date(2024, 4, 1)


@pytest.fixture
def cells():
    center = base_cell(RES)
    ring = sorted(set(h3.grid_disk(center, 1)) - {center})
    return [center] + ring[:2]


@pytest.fixture
def grid_repo(app_config, duckdb_repo, cells):
    repo = GridTableRepository(app_config.pipeline, duckdb_repo)
    rows, _ = normalize_batch(make_rows_for_cells(cells, days=4, hotspots_per_cell=2))
    grid, _ = build_grid_cells(rows, RES)
    repo.write(RES, grid)
    return repo


@pytest.fixture
def outside(cells):
    """A valid cell with forecast rows but no grid table rows."""
    return sorted(h3.grid_ring(cells[0], 4))[0]


@pytest.fixture
def forecast_repo(app_config, duckdb_repo, cells, outside):
    repo = ForecastRepository(app_config.pipeline, duckdb_repo)
    records = []
    for hex_id in cells + [outside]:
        for offset in range(6):
            d = (START + timedelta(days=offset)).isoformat()
            records.append({
                "date": d, "hex": hex_id,
                "forecasted_poc": 100.0, "forecasted_dc": 10.0, "forecasted_total": 110.0,
                "lower_band": 90.0, "upper_band": 130.0,
            })
    path = repo.path(RES)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(records).to_parquet(path, index=False)
    return repo


@pytest.fixture
def service(grid_repo, forecast_repo, app_config):
    return GridQueryService(grid_repo, forecast_repo, app_config)


def _polygon_around(cell, scale=0.3):
    """Small triangle around a cell centroid, well inside its neighbors' centroids."""
    lat, lon = h3.cell_to_latlng(cell)
    edge_deg = h3.average_hexagon_edge_length(RES, unit="km") / 111.0 * scale
    return RegionPolygon(vertices=[
        (lat - edge_deg, lon - edge_deg),
        (lat - edge_deg, lon + edge_deg),
        (lat + edge_deg, lon),
    ])


class TestObserved:

    def test_all_cells(self, service, cells):
        response = service.query(GridQueryRequest(resolution=RES))
        assert response.mode == QueryMode.OBSERVED
        assert len(response.rows) == 12
        assert response.cell_count == 3
        assert response.status.first_date == "2024-03-01"
        assert response.status.last_date == "2024-03-04"
        assert response.status.last_updated is not None

    def test_totals(self, service):
        response = service.query(GridQueryRequest(resolution=RES, field=MeasureField.BEACON))
        rows = response.rows
        assert response.totals["rows"] == 12
        assert response.totals["total_rewards"] == pytest.approx(sum(r.total_rewards for r in rows))
        assert response.totals["selected"] == response.totals["beacon"]
        assert set(f.value for f in MeasureField) <= set(response.totals)

    def test_date_filter(self, service):
        response = service.query(
            GridQueryRequest(resolution=RES, date_from="2024-03-02", date_to="2024-03-03")
        )
        assert {r.date for r in response.rows} == {"2024-03-02", "2024-03-03"}

    def test_hex_selection(self, service, cells):
        response = service.query(GridQueryRequest(resolution=RES, hexes=[cells[1]]))
        assert {r.hex for r in response.rows} == {cells[1]}
        assert response.filters["hexes"] == 1

    def test_polygon_selection(self, service, cells):
        request = GridQueryRequest(resolution=RES, polygon=_polygon_around(cells[0]))
        response = service.query(request)
        assert {r.hex for r in response.rows} == {cells[0]}
        assert response.filters["polygon_area_km2"] > 0

    def test_degenerate_polygon_means_all_cells(self, service):
        request = GridQueryRequest(
            resolution=RES, polygon=RegionPolygon(vertices=[(0, 0), (1, 1)])
        )
        assert service.query(request).cell_count == 3

    def test_limit(self, service):
        response = service.query(GridQueryRequest(resolution=RES, limit=5))
        assert len(response.rows) == 5
        assert response.filters["limit"] == 5

    def test_limit_capped(self, service, app_config):
        app_config.serving.max_row_limit = 4
        response = service.query(GridQueryRequest(resolution=RES, limit=100))
        assert len(response.rows) == 4

    def test_default_resolution(self, grid_repo, forecast_repo, app_config):
        app_config.h3.default_resolution = RES
        service = GridQueryService(grid_repo, forecast_repo, app_config)
        assert service.query(GridQueryRequest()).resolution == RES

    def test_unknown_hex_dropped(self, service, cells, outside):
        response = service.query(GridQueryRequest(resolution=RES, hexes=[cells[0], outside]))
        assert {r.hex for r in response.rows} == {cells[0]}

    def test_only_unknown_hexes_select_nothing(self, service, outside):
        response = service.query(GridQueryRequest(resolution=RES, hexes=[outside]))
        assert response.rows == []
        assert response.cell_count == 0

    def test_missing_table(self, service):
        with pytest.raises(GridTableNotFoundError):
            service.query(GridQueryRequest(resolution=5))


class TestForecast:

    def _request(self, **kwargs):
        scenario = kwargs.pop("scenario", ScenarioParams())
        return GridQueryRequest(
            resolution=RES, mode=QueryMode.FORECAST, start_date=START.isoformat(),
            scenario=scenario, **kwargs
        )

    def test_no_selection_is_empty(self, service):
        response = service.query(self._request())
        assert response.cells == []
        assert response.cell_count == 0
        assert response.totals["value"] == 0.0

    def test_hex_selection(self, service, cells):
        response = service.query(self._request(hexes=cells[:2]))
        assert response.cell_count == 2
        # 4-day horizon, 110 per day
        assert all(c.value == pytest.approx(440) for c in response.cells)
        assert response.status.first_date == "2024-04-01"
        assert response.status.last_date == "2024-04-04"

    def test_scenario_applied(self, service, cells):
        scenario = ScenarioParams(
            poc_multiplier=2.0, data_multiplier=0.0,
            aggregation=AggregationMode.AVERAGE, horizon_days=2,
        )
        response = service.query(self._request(hexes=[cells[0]], scenario=scenario))
        cell = response.cells[0]
        assert cell.value == pytest.approx(200)
        assert cell.lower_band == pytest.approx(90 * 200 / 110)
        assert response.filters["scenario"]["horizon_days"] == 2

    def test_context_from_grid_table(self, service, grid_repo, cells):
        index = grid_repo.read_cell_index(RES)
        response = service.query(self._request(hexes=[cells[0]]))
        assert response.cells[0].density_k1 == index[cells[0]].density_k1
        assert (response.cells[0].lat, response.cells[0].lon) == (
            index[cells[0]].lat, index[cells[0]].lon,
        )

    def test_polygon_selection(self, service, cells):
        response = service.query(self._request(polygon=_polygon_around(cells[1])))
        assert [c.hex for c in response.cells] == [cells[1]]

    def test_window_past_forecast_is_empty(self, service, cells):
        request = self._request(hexes=cells)
        request.start_date = "2030-01-01"
        assert service.query(request).cells == []

    def test_unknown_hex_not_forecast(self, service, cells, outside):
        response = service.query(self._request(hexes=[cells[0], outside]))
        assert [c.hex for c in response.cells] == [cells[0]]

    def test_status_reports_forecast_coverage(self, service, cells):
        response = service.query(self._request(hexes=cells))
        assert response.status.forecast_through == "2024-04-06"
        assert response.status.last_updated is not None

    def test_no_selection_still_requires_table(self, grid_repo, forecast_repo, app_config):
        service = GridQueryService(grid_repo, forecast_repo, app_config)
        request = self._request()
        request.resolution = 5
        with pytest.raises(GridTableNotFoundError):
            service.query(request)

    def test_missing_forecast_file_is_empty(self, grid_repo, app_config, duckdb_repo, cells):
        forecasts = ForecastRepository(app_config.pipeline, duckdb_repo)
        assert not forecasts.path(RES).exists()
        service = GridQueryService(grid_repo, forecasts, app_config)
        assert service.query(self._request(hexes=cells)).cells == []


class TestCancellation:

    def test_cancelled_token_raises(self, service):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(QueryCancelledError):
            service.query(GridQueryRequest(resolution=RES), token=token)

    def test_live_token_passes(self, service):
        token = CancellationToken()
        assert service.query(GridQueryRequest(resolution=RES), token=token).rows


def test_invalid_resolution_rejected(service):
    request = GridQueryRequest(resolution=RES)
    request.resolution = 42
    with pytest.raises(ValidationError):
        service.query(request)


def test_debouncer_uses_configured_delay(service, app_config, cells):
    app_config.serving.debounce_seconds = 0.2
    results = []
    done = threading.Event()

    def on_result(response):
        results.append(response)
        done.set()

    debouncer = service.debouncer(on_result)
    assert debouncer.delay_seconds == pytest.approx(0.2)
    debouncer.submit(GridQueryRequest(resolution=RES, hexes=[cells[1]]))
    debouncer.submit(GridQueryRequest(resolution=RES, hexes=[cells[0]]))
    assert done.wait(5.0)
    debouncer.wait(5.0)
    assert [{r.hex for r in resp.rows} for resp in results] == [{cells[0]}]
