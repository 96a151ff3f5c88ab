# ============================================================================
# REWARD GRID HTTP API
# ============================================================================
# STATUS: Trigger - FastAPI query surface
# PURPOSE: Serve observed and forecast grid queries over HTTP
# EXPORTS: create_app, build_request, app
# DEPENDENCIES: fastapi, uvicorn
# ============================================================================
"""
Reward Grid HTTP API.

Endpoints:
    GET /api/iot/h3/daily   Grid query (observed history or forecast scenario)
    GET /livez              Liveness probe
    GET /readyz             Readiness probe (DuckDB reachable)

Query parameters for /api/iot/h3/daily:
    res       H3 resolution (default from configuration)
    from, to  Inclusive date bounds, YYYY-MM-DD
    hex       Comma-separated cell ids
    poly      JSON array of [lat, lon] vertices
    mode      observed | forecast (legacy: forecast=true)
    horizon   Forecast days, clamped to 1..4
    agg       sum | average | day
    day       Day offset for agg=day, clamped to 1..horizon
    poc, data Scenario multipliers (default 1)
    field     Measure summed into totals.selected
    limit     Observed row cap
    start     First forecast day (default today, UTC)

Errors are JSON {"ok": false, "error": ...}: 404 when the grid table is not
built, 400 for invalid parameters, 500 otherwise.

Run locally:
    uvicorn grid_api:app --host 0.0.0.0 --port 8080
"""

import json
import uuid
from typing import Any, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from config import AppConfig, get_config
from core.models import (
    AggregationMode,
    GridQueryRequest,
    MeasureField,
    QueryMode,
    RegionPolygon,
    ScenarioParams,
)
from exceptions import ResourceNotFoundError, ValidationError
from infrastructure.duckdb import create_duckdb_repository
from infrastructure.forecast_repository import ForecastRepository
from infrastructure.grid_table_repository import GridTableRepository
from services.grid_query import GridQueryService
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "grid_api")


# ============================================================================
# PARAMETER PARSING
# ============================================================================

def _parse_polygon(poly: Optional[str]) -> Optional[RegionPolygon]:
    if not poly:
        return None
    try:
        data = json.loads(poly)
    except json.JSONDecodeError as e:
        raise ValidationError(f"poly must be a JSON array of [lat, lon] pairs: {e}")

    if not isinstance(data, list):
        raise ValidationError("poly must be a JSON array of [lat, lon] pairs")
    vertices = []
    for vertex in data:
        if not isinstance(vertex, (list, tuple)) or len(vertex) != 2:
            raise ValidationError(f"poly vertex must be [lat, lon], got: {vertex!r}")
        try:
            vertices.append((float(vertex[0]), float(vertex[1])))
        except (TypeError, ValueError):
            raise ValidationError(f"poly vertex must be numeric, got: {vertex!r}")
    return RegionPolygon(vertices=vertices)


def _parse_choice(enum_cls, name: str, value: Optional[str], default):
    if value is None or value == "":
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}; got: {value!r}")


def _split_hexes(hex_param: Optional[str]) -> List[str]:
    if not hex_param:
        return []
    return [h.strip() for h in hex_param.split(",") if h.strip()]


def build_request(
    res: Optional[int] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    hex_param: Optional[str] = None,
    poly: Optional[str] = None,
    mode: Optional[str] = None,
    forecast: bool = False,
    horizon: Optional[int] = None,
    agg: Optional[str] = None,
    day: Optional[int] = None,
    poc: Optional[float] = None,
    data: Optional[float] = None,
    field: Optional[str] = None,
    limit: Optional[int] = None,
    start: Optional[str] = None,
    config: Optional[AppConfig] = None
) -> GridQueryRequest:
    """
    Build a GridQueryRequest from raw HTTP query parameters.

    Raises:
        ValidationError: Malformed polygon, unknown enum value, or any
            value the request model rejects
    """
    config = config or get_config()
    query_mode = _parse_choice(
        QueryMode, "mode", mode, QueryMode.FORECAST if forecast else QueryMode.OBSERVED
    )

    try:
        return GridQueryRequest(
            resolution=res,
            date_from=date_from or None,
            date_to=date_to or None,
            hexes=_split_hexes(hex_param),
            polygon=_parse_polygon(poly),
            mode=query_mode,
            field=_parse_choice(MeasureField, "field", field, MeasureField.TOTAL_REWARDS),
            limit=limit,
            start_date=start or None,
            scenario=ScenarioParams(
                poc_multiplier=poc,
                data_multiplier=data,
                aggregation=_parse_choice(AggregationMode, "agg", agg, AggregationMode.SUM),
                horizon_days=horizon if horizon is not None else config.serving.max_horizon_days,
                day_offset=day,
            ),
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid query parameters: {e.errors(include_url=False)}")


# ============================================================================
# APP FACTORY
# ============================================================================

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the API with its own repositories and query service.

    Handles live on app.state; nothing is shared across apps.
    """
    config = config or get_config()
    LoggerFactory.set_level(config.log_level)
    duckdb_repo = create_duckdb_repository(config.analytics)
    grid_repo = GridTableRepository(config.pipeline, duckdb_repo)
    forecast_repo = ForecastRepository(config.pipeline, duckdb_repo)

    app = FastAPI(
        title="IoT Reward Grid",
        description="H3 reward grid history and forecast scenarios",
        version="1.0.0",
    )
    app.state.config = config
    app.state.duckdb = duckdb_repo
    app.state.grid_repository = grid_repo
    app.state.forecast_repository = forecast_repo
    app.state.query_service = GridQueryService(grid_repo, forecast_repo, config)

    # ------------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------------

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(request: Request, exc: ResourceNotFoundError):
        logger.warning(f"⚠️ Not found: {exc}")
        return _error(404, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        logger.info(f"Rejected request: {exc}")
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected request parameters: {exc.errors()}")
        return _error(400, f"Invalid query parameters: {exc.errors()}")

    @app.exception_handler(Exception)
    async def unexpected_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return _error(500, f"Internal error: {type(exc).__name__}")

    # ------------------------------------------------------------------------
    # Query endpoint
    # ------------------------------------------------------------------------

    @app.get("/api/iot/h3/daily")
    def daily_grid(
        res: Optional[int] = Query(None),
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        hex_param: Optional[str] = Query(None, alias="hex"),
        poly: Optional[str] = Query(None),
        mode: Optional[str] = Query(None),
        forecast: bool = Query(False),
        horizon: Optional[int] = Query(None),
        agg: Optional[str] = Query(None),
        day: Optional[int] = Query(None),
        poc: Optional[float] = Query(None),
        data: Optional[float] = Query(None),
        field: Optional[str] = Query(None),
        limit: Optional[int] = Query(None),
        start: Optional[str] = Query(None),
    ) -> Any:
        """Observed grid rows or forecast scenario cells."""
        request_id = uuid.uuid4().hex[:12]
        request_logger = LoggerFactory.create_with_context(
            ComponentType.TRIGGER, "grid_api", request_id=request_id, resolution=res
        )

        query = build_request(
            res=res,
            date_from=date_from,
            date_to=date_to,
            hex_param=hex_param,
            poly=poly,
            mode=mode,
            forecast=forecast,
            horizon=horizon,
            agg=agg,
            day=day,
            poc=poc,
            data=data,
            field=field,
            limit=limit,
            start=start,
            config=app.state.config,
        )
        request_logger.info(
            f"Grid query: mode={query.mode.value} res={query.resolution} "
            f"hexes={len(query.hexes)} polygon={'yes' if query.polygon else 'no'}"
        )

        response = app.state.query_service.query(query)
        return response.model_dump(mode="json")

    # ------------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------------

    @app.get("/livez")
    def liveness_probe():
        """Returns 200 while the process is running."""
        return {"status": "ok"}

    @app.get("/readyz")
    def readiness_probe():
        """Returns 200 when DuckDB answers queries."""
        health = app.state.duckdb.health_check()
        if health.get("status") != "healthy":
            return JSONResponse(status_code=503, content={"status": "not_ready", "duckdb": health})
        return {"status": "ready", "duckdb": health}

    logger.info(f"Grid API created (environment={config.environment}, data_dir={config.pipeline.data_dir})")
    return app


app = create_app()
