# ============================================================================
# FORECAST REPOSITORY
# ============================================================================
# STATUS: Infrastructure - read-only access to model forecasts
# PURPOSE: Read per-cell daily forecast rows for a date window
# EXPORTS: ForecastRepository, FORECAST_COLUMNS
# DEPENDENCIES: duckdb
# ============================================================================
"""
Forecast Repository.

Forecast rows are produced by an external model and written to:

    {data_dir}/forecasts/iot/h3/r{res}/latest.parquet

Expected columns: date, hex, and any of forecasted_poc, forecasted_dc,
forecasted_total, lower_band, upper_band. Missing value columns read as
absent. A missing file means "no forecast yet" and yields no rows.
"""

from pathlib import Path
from typing import Any, List, Optional

from config import PipelineConfig
from core.models import ForecastRow
from util_logger import LoggerFactory, ComponentType
from .duckdb import IDuckDBRepository, parquet_source
from .grid_table_repository import frame_to_records

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ForecastRepository")

FORECAST_COLUMNS = [
    "forecasted_poc",
    "forecasted_dc",
    "forecasted_total",
    "lower_band",
    "upper_band",
]


class ForecastRepository:
    """Reads forecast rows; never writes them."""

    def __init__(self, config: PipelineConfig, duckdb_repo: IDuckDBRepository):
        self.config = config
        self.duckdb = duckdb_repo

    def path(self, resolution: int) -> Path:
        return self.config.forecast_path(resolution)

    def _available_columns(self, path: Path) -> List[str]:
        rows = self.duckdb.query(f"DESCRIBE SELECT * FROM {parquet_source(path)}")
        return [row[0] for row in rows]

    def read_rows(
        self,
        resolution: int,
        hexes: List[str],
        date_from: str,
        date_to: str,
    ) -> List[ForecastRow]:
        """
        Forecast rows for the given cells within [date_from, date_to].

        Args:
            resolution: H3 resolution
            hexes: Cells to read (empty = no rows)
            date_from: Inclusive first day
            date_to: Inclusive last day

        Returns:
            Rows ordered by hex then date; empty when no forecast file exists
        """
        path = self.path(resolution)
        if not path.exists():
            logger.warning(f"⚠️ No forecast file for resolution {resolution}: {path}")
            return []
        if not hexes:
            return []

        available = set(self._available_columns(path))
        selects = ["CAST(date AS VARCHAR) AS date", "hex"]
        for column in FORECAST_COLUMNS:
            if column in available:
                selects.append(f"CAST({column} AS DOUBLE) AS {column}")
            else:
                selects.append(f"NULL::DOUBLE AS {column}")

        sql = (
            f"SELECT {', '.join(selects)} FROM {parquet_source(path)} "
            "WHERE list_contains(?::VARCHAR[], hex) "
            "AND CAST(date AS VARCHAR) >= ? AND CAST(date AS VARCHAR) <= ? "
            "ORDER BY hex, date"
        )
        params: List[Any] = [list(hexes), date_from, date_to]

        df = self.duckdb.query_to_df(sql, params)
        rows = [ForecastRow(**record) for record in frame_to_records(df)]
        logger.debug(f"Read {len(rows)} forecast rows for {len(hexes)} cells")
        return rows

    def latest_date(self, resolution: int) -> Optional[str]:
        """Last forecast day available, or None."""
        path = self.path(resolution)
        if not path.exists():
            return None
        return self.duckdb.query(
            f"SELECT max(CAST(date AS VARCHAR)) FROM {parquet_source(path)}"
        )[0][0]
