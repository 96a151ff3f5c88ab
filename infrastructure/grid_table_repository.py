# ============================================================================
# GRID TABLE REPOSITORY
# ============================================================================
# STATUS: Infrastructure - persisted H3 reward grid tables
# PURPOSE: Atomic Parquet writes (pandas/pyarrow) and filtered reads (DuckDB)
# EXPORTS: GridTableRepository
# DEPENDENCIES: pandas, pyarrow, duckdb
# ============================================================================
"""
Grid Table Repository.

One Parquet file per resolution:

    {data_dir}/features/iot/h3/r{res}/latest.parquet

Columns (in order): date, hex, res, lat, lon, beacon, witness, dc_transfer,
poc_rewards, total_rewards, hotspot_count, registered_hotspots, density_k1,
ma_3d_total, ma_3d_poc, transmit_scale_approx.

Writes replace the whole table atomically: the frame goes to a temporary
file in the same directory and is moved over the old table with
os.replace, so a reader opens either the previous table or the new one.
Two concurrent writers on the same resolution are not supported; the
caller serializes refresh runs.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from config import PipelineConfig
from core.models import GRID_TABLE_COLUMNS, CellContext, HexDayCell
from exceptions import GridTableNotFoundError, PipelineError
from util_logger import LoggerFactory, ComponentType, log_exceptions
from .duckdb import IDuckDBRepository, parquet_source

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "GridTableRepository")

# Column dtypes; ma_3d_* stay nullable floats
GRID_TABLE_DTYPES: Dict[str, str] = {
    "date": "string",
    "hex": "string",
    "res": "int64",
    "lat": "float64",
    "lon": "float64",
    "beacon": "float64",
    "witness": "float64",
    "dc_transfer": "float64",
    "poc_rewards": "float64",
    "total_rewards": "float64",
    "hotspot_count": "int64",
    "registered_hotspots": "int64",
    "density_k1": "int64",
    "ma_3d_total": "float64",
    "ma_3d_poc": "float64",
    "transmit_scale_approx": "float64",
}


def cells_to_frame(cells: List[HexDayCell]) -> pd.DataFrame:
    """Grid rows to a DataFrame with the persisted column order and dtypes."""
    if not cells:
        return pd.DataFrame({c: pd.Series(dtype=GRID_TABLE_DTYPES[c]) for c in GRID_TABLE_COLUMNS})
    df = pd.DataFrame([c.model_dump() for c in cells], columns=GRID_TABLE_COLUMNS)
    return df.astype(GRID_TABLE_DTYPES)


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows to dicts with NaN/NA replaced by None."""
    return df.astype(object).where(pd.notna(df), None).to_dict("records")


class GridTableRepository:
    """
    Reads and writes persisted grid tables.

    Holds no table state; every read goes to the file on disk, so a
    completed refresh is visible to the next query.
    """

    def __init__(self, config: PipelineConfig, duckdb_repo: IDuckDBRepository):
        self.config = config
        self.duckdb = duckdb_repo

    def path(self, resolution: int) -> Path:
        return self.config.grid_table_path(resolution)

    def exists(self, resolution: int) -> bool:
        return self.path(resolution).exists()

    def _require(self, resolution: int) -> Path:
        path = self.path(resolution)
        if not path.exists():
            raise GridTableNotFoundError(resolution, str(path))
        return path

    # ========================================================================
    # WRITE
    # ========================================================================

    @log_exceptions(logger=logger)
    def write(self, resolution: int, cells: List[HexDayCell]) -> Dict[str, Any]:
        """
        Replace the grid table for a resolution.

        STEP 1: Build the frame
        STEP 2: Write to a temporary file beside the target
        STEP 3: os.replace over the target

        Args:
            resolution: H3 resolution
            cells: Every grid row of the new table

        Returns:
            Dict with path, row_count, file_size_bytes

        Raises:
            PipelineError: Write or replace failed (temporary file removed)
        """
        target = self.path(resolution)
        target.parent.mkdir(parents=True, exist_ok=True)

        df = cells_to_frame(cells)

        fd, tmp_name = tempfile.mkstemp(
            dir=str(target.parent), prefix=".latest-", suffix=".parquet.tmp"
        )
        os.close(fd)
        tmp_path = Path(tmp_name)

        try:
            logger.info(f"🔄 STEP 2: Writing {len(df)} rows to {tmp_path.name}")
            df.to_parquet(tmp_path, engine="pyarrow", index=False)
            os.replace(tmp_path, target)
        except Exception as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise PipelineError(f"Failed to write grid table {target}: {e}") from e

        size = target.stat().st_size
        logger.info(f"✅ STEP 3: Grid table replaced - {target} ({len(df)} rows, {size:,} bytes)")
        return {
            "path": str(target),
            "row_count": len(df),
            "file_size_bytes": size,
        }

    # ========================================================================
    # READ
    # ========================================================================

    def read_cells(
        self,
        resolution: int,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        hexes: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[HexDayCell]:
        """
        Grid rows for a resolution, ordered by date then hex.

        Args:
            resolution: H3 resolution
            date_from: Inclusive lower date bound
            date_to: Inclusive upper date bound
            hexes: Restrict to these cells (None = all cells, [] = none)
            limit: Maximum rows

        Raises:
            GridTableNotFoundError: Table not built for this resolution
        """
        path = self._require(resolution)
        if hexes is not None and len(hexes) == 0:
            return []

        where = []
        params: List[Any] = []
        if date_from:
            where.append("date >= ?")
            params.append(date_from)
        if date_to:
            where.append("date <= ?")
            params.append(date_to)
        if hexes is not None:
            where.append("list_contains(?::VARCHAR[], hex)")
            params.append(list(hexes))

        sql = f"SELECT * FROM {parquet_source(path)}"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY date, hex"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"

        df = self.duckdb.query_to_df(sql, params)
        return [HexDayCell(**record) for record in frame_to_records(df)]

    def read_cell_index(
        self,
        resolution: int,
        hexes: Optional[List[str]] = None,
    ) -> Dict[str, CellContext]:
        """
        Static per-cell facts (centroid, registry count, density).

        These columns do not vary by date, so one row per cell is taken.

        Raises:
            GridTableNotFoundError: Table not built for this resolution
        """
        path = self._require(resolution)
        if hexes is not None and len(hexes) == 0:
            return {}

        sql = (
            "SELECT hex, max(lat) AS lat, max(lon) AS lon, "
            "max(registered_hotspots) AS hotspot_count, max(density_k1) AS density_k1 "
            f"FROM {parquet_source(path)}"
        )
        params: List[Any] = []
        if hexes is not None:
            sql += " WHERE list_contains(?::VARCHAR[], hex)"
            params.append(list(hexes))
        sql += " GROUP BY hex ORDER BY hex"

        rows = self.duckdb.query(sql, params)
        return {
            hex_id: CellContext(
                hex=hex_id,
                lat=float(lat),
                lon=float(lon),
                hotspot_count=int(count or 0),
                density_k1=int(density or 0),
            )
            for hex_id, lat, lon, count, density in rows
        }

    def last_modified(self, resolution: int) -> datetime:
        """
        When the table was last replaced (file mtime, UTC).

        Raises:
            GridTableNotFoundError: Table not built for this resolution
        """
        path = self._require(resolution)
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
