"""
HTTP surface tests for grid_api.

Runs the FastAPI app against a grid table and forecast written into a
temporary data directory.
"""

import json
import logging
from datetime import date, timedelta

import h3
import pandas as pd
import pytest
from fastapi.testclient import TestClient

from exceptions import ValidationError
from grid_api import build_request, create_app
from core.models import AggregationMode, QueryMode
from infrastructure.duckdb import DuckDBRepository
from infrastructure.grid_table_repository import GridTableRepository
from services.h3_aggregation import build_grid_cells
from services.ingest import normalize_batch
from tests.factories.reward_factories import base_cell, make_rows_for_cells

RES = 8
START = date(2024, 4, 1)
URL = "/api/iot/h3/daily"


@pytest.fixture
def cells():
    center = base_cell(RES)
    return [center, sorted(set(h3.grid_disk(center, 1)) - {center})[0]]


@pytest.fixture
def tables(app_config, cells):
    repo = DuckDBRepository(connection_type="memory", threads=2)
    rows, _ = normalize_batch(make_rows_for_cells(cells, days=3))
    grid, _ = build_grid_cells(rows, RES)
    GridTableRepository(app_config.pipeline, repo).write(RES, grid)
    repo.close()

    records = []
    for hex_id in cells:
        for offset in range(4):
            records.append({
                "date": (START + timedelta(days=offset)).isoformat(), "hex": hex_id,
                "forecasted_poc": 10.0, "forecasted_dc": 2.0, "forecasted_total": 12.0,
                "lower_band": 8.0, "upper_band": 16.0,
            })
    path = app_config.pipeline.forecast_path(RES)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(records).to_parquet(path, index=False)


@pytest.fixture
def app(app_config, tables):
    application = create_app(app_config)
    yield application
    application.state.duckdb.close()


@pytest.fixture
def client(app):
    return TestClient(app)


class TestObservedEndpoint:

    def test_all_rows(self, client):
        response = client.get(URL, params={"res": RES})
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["mode"] == "observed"
        assert body["cell_count"] == 2
        assert len(body["rows"]) == 6
        assert body["status"]["first_date"] == "2024-03-01"

    def test_hex_and_dates(self, client, cells):
        response = client.get(URL, params={
            "res": RES, "hex": f" {cells[1]} ,", "from": "2024-03-02", "to": "2024-03-02",
        })
        body = response.json()
        assert [(r["hex"], r["date"]) for r in body["rows"]] == [(cells[1], "2024-03-02")]

    def test_polygon(self, client, cells):
        lat, lon = h3.cell_to_latlng(cells[0])
        d = h3.average_hexagon_edge_length(RES, unit="km") / 111.0 * 0.3
        poly = json.dumps([[lat - d, lon - d], [lat - d, lon + d], [lat + d, lon]])
        body = client.get(URL, params={"res": RES, "poly": poly}).json()
        assert {r["hex"] for r in body["rows"]} == {cells[0]}

    def test_field_selects_total(self, client):
        body = client.get(URL, params={"res": RES, "field": "beacon"}).json()
        assert body["totals"]["selected"] == body["totals"]["beacon"]


class TestForecastEndpoint:

    def test_forecast_mode(self, client, cells):
        response = client.get(URL, params={
            "res": RES, "mode": "forecast", "hex": ",".join(cells),
            "start": START.isoformat(), "horizon": 2,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "forecast"
        assert body["cell_count"] == 2
        assert body["cells"][0]["value"] == pytest.approx(24.0)
        assert body["cells"][0]["days"] == 2

    def test_legacy_forecast_flag(self, client, cells):
        body = client.get(URL, params={
            "res": RES, "forecast": "true", "hex": cells[0],
            "start": START.isoformat(), "agg": "day", "day": 3, "poc": 2,
        }).json()
        assert body["mode"] == "forecast"
        # poc doubled on the third day only
        assert body["cells"][0]["value"] == pytest.approx(22.0)

    def test_forecast_without_selection(self, client):
        body = client.get(URL, params={"res": RES, "mode": "forecast"}).json()
        assert body["cells"] == []
        assert body["cell_count"] == 0


class TestErrors:

    def test_missing_table_404(self, client):
        response = client.get(URL, params={"res": 5})
        assert response.status_code == 404
        assert response.json()["ok"] is False

    def test_forecast_without_table_404(self, client):
        response = client.get(URL, params={"res": 5, "mode": "forecast"})
        assert response.status_code == 404

    @pytest.mark.parametrize("params", [
        {"poly": "[[1, 2], [3"},
        {"poly": "[[1, 2, 3]]"},
        {"field": "mystery"},
        {"mode": "later"},
        {"agg": "median"},
        {"from": "03/01/2024"},
        {"res": "nine"},
        {"res": 16},
        {"limit": 0},
    ])
    def test_bad_parameters_400(self, client, params):
        response = client.get(URL, params={"res": RES, **params})
        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"]

    def test_unexpected_error_500(self, app, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(app.state.query_service, "query", explode)
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get(URL, params={"res": RES})
        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Internal error: RuntimeError"}


class TestHealth:

    def test_livez(self, client):
        assert client.get("/livez").json() == {"status": "ok"}

    def test_readyz(self, client):
        response = client.get("/readyz")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestBuildRequest:

    def test_defaults(self, app_config):
        request = build_request(config=app_config)
        assert request.mode == QueryMode.OBSERVED
        assert request.scenario.horizon_days == app_config.serving.max_horizon_days
        assert request.scenario.aggregation == AggregationMode.SUM

    def test_clamps_horizon(self, app_config):
        request = build_request(horizon=30, day=0, config=app_config)
        assert request.scenario.horizon_days == 4
        assert request.scenario.day_offset == 1

    def test_explicit_mode_wins_over_flag(self, app_config):
        assert build_request(mode="observed", forecast=True, config=app_config).mode == QueryMode.OBSERVED

    def test_invalid_date(self, app_config):
        with pytest.raises(ValidationError):
            build_request(date_from="yesterday", config=app_config)


def test_requests_do_not_register_loggers(client):
    client.get(URL, params={"res": RES})
    before = len(logging.root.manager.loggerDict)
    for _ in range(25):
        assert client.get(URL, params={"res": RES}).status_code == 200
    assert len(logging.root.manager.loggerDict) == before
