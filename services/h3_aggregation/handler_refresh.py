# ============================================================================
# H3 REWARD GRID REFRESH HANDLER
# ============================================================================
# STATUS: Service Handler - batch grid refresh
# PURPOSE: Raw rewards -> normalized rows -> H3 grid table (Parquet)
# EXPORTS: h3_reward_grid_refresh, build_grid_cells
# DEPENDENCIES: infrastructure (sources, registry, grid table), h3
# ============================================================================
"""
H3 Reward Grid Refresh Handler.

Rebuilds the grid table for one resolution from the raw reward dump and
the hotspot registry, then atomically replaces the persisted table.

Steps:
    1. Resolve parameters (defaults from configuration)
    2. Load raw reward records
    3. Load hotspot registry
    4. Normalize records
    5. Aggregate onto the grid
    6. Registry density
    7. Trailing means and transmit scale
    8. Write the table

Concurrent refreshes of the same resolution are not supported; whatever
schedules this handler must run them one at a time.

Usage:
    result = h3_reward_grid_refresh({
        "resolution": 9,
        "days": 60,
        "source_path": "data/raw/iot_rewards.jsonl",
        "hotspots_path": "data/raw/hotspots.json"
    })
"""

import uuid
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import AppConfig, get_config
from core.models import AggregationStats, CanonicalDailyRow, HexDayCell, HotspotLocation
from exceptions import ContractViolationError, ValidationError
from util_logger import (
    LoggerFactory,
    ComponentType,
    log_memory_checkpoint,
    clear_checkpoint_context,
)
from .base import resolve_resolution
from .density import attach_density, build_static_index
from .hex_aggregator import HexGridAggregator
from .smoothing import apply_transmit_scale, smooth_cells


def build_grid_cells(
    rows: Iterable[CanonicalDailyRow],
    resolution: int,
    registry: Optional[Dict[str, HotspotLocation]] = None,
    days: Optional[int] = None,
    as_of: Optional[date] = None,
    target_density: float = 1.0,
    ring: int = 1
) -> Tuple[List[HexDayCell], AggregationStats]:
    """
    Turn canonical rows into finished grid rows (no I/O).

    Aggregates, attaches registry density, fills trailing means and the
    transmit-scale hint.

    Returns:
        (grid rows sorted by date then hex, aggregation counters)
    """
    registry = registry or {}
    aggregator = HexGridAggregator(resolution, registry=registry, days=days, as_of=as_of)
    cells = aggregator.aggregate(rows)

    index = build_static_index(registry, resolution, ring=ring)
    attach_density(cells, index)
    smooth_cells(cells)
    apply_transmit_scale(cells, target_density)
    return cells, aggregator.stats


def _parse_as_of(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"as_of must be YYYY-MM-DD, got: {value!r}")


def h3_reward_grid_refresh(params: Dict[str, Any], context: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Rebuild and persist the reward grid table for one resolution.

    Args:
        params: Task parameters (all optional, defaults from configuration):
            - resolution (int): H3 resolution
            - days (int): Trailing day window (<= 0 keeps everything)
            - as_of (str): Window reference day, YYYY-MM-DD (default today UTC)
            - source_path (str): Raw rewards file
            - hotspots_path (str): Hotspot registry file
            - target_density (float): Transmit-scale target
            - data_dir (str): Output root directory

        context: Optional execution context; may carry "config" (AppConfig)
            and "run_id"

    Returns:
        Success dict:
        {
            "success": True,
            "result": {
                "run_id": str,
                "resolution": int,
                "path": str,
                "row_count": int,
                "first_date": str | None,
                "last_date": str | None,
                "source": {...},
                "normalization": {...},
                "aggregation": {...},
                "registry_hotspots": int
            }
        }
        or failure dict {"success": False, "error": str, "error_type": str}
    """
    context = context or {}
    config: AppConfig = context.get("config") or get_config()
    run_id = context.get("run_id") or uuid.uuid4().hex[:12]

    logger = LoggerFactory.create_with_context(
        ComponentType.JOB, "h3_reward_grid_refresh", run_id=run_id
    )

    try:
        from infrastructure.duckdb import create_duckdb_repository
        from infrastructure.grid_table_repository import GridTableRepository
        from infrastructure.hotspot_registry import HotspotRegistryRepository
        from infrastructure.reward_source import RewardSourceRepository
        from services.ingest import RewardNormalizer

        # STEP 1: Resolve parameters
        resolution = resolve_resolution(params.get("resolution"), config.h3.default_resolution)
        days = params.get("days")
        days = config.pipeline.refresh_days if days is None else int(days)
        as_of = _parse_as_of(params.get("as_of"))
        target_density = params.get("target_density")
        target_density = (
            config.pipeline.target_density if target_density is None else float(target_density)
        )
        pipeline = config.pipeline.model_copy(update={
            "data_dir": params.get("data_dir") or config.pipeline.data_dir,
            "source_path": params.get("source_path") or config.pipeline.source_path,
            "hotspots_path": params.get("hotspots_path") or config.pipeline.hotspots_path,
        })
        if target_density <= 0:
            raise ValidationError(f"target_density must be > 0, got: {target_density}")

        logger.info(f"🔄 STEP 1: Refreshing r{resolution} grid (days={days}, as_of={as_of or 'today'})")
        logger.info(f"   Source: {pipeline.source_path}")
        logger.info(f"   Registry: {pipeline.hotspots_path}")
        log_memory_checkpoint(logger, "refresh start", context_id=run_id)

        # STEP 2: Raw rewards
        source = RewardSourceRepository(pipeline.source_path).load()
        logger.info(f"✅ STEP 2: {len(source.records)} raw records ({source.corrupt_lines} corrupt)")

        # STEP 3: Registry
        registry = HotspotRegistryRepository(pipeline.hotspots_path).load()
        logger.info(f"✅ STEP 3: {len(registry)} located registry hotspots")

        # STEP 4: Normalize
        normalizer = RewardNormalizer(
            bones_per_token=pipeline.bones_per_token,
            max_issue_warnings=pipeline.max_issue_warnings,
        )
        rows, norm_stats = normalizer.normalize_batch(source.records)
        logger.info(f"✅ STEP 4: {len(rows)} canonical rows ({norm_stats.skipped} skipped)")
        log_memory_checkpoint(logger, "after normalize", context_id=run_id, rows=len(rows))

        # STEP 5-7: Aggregate, density, smoothing
        cells, agg_stats = build_grid_cells(
            rows,
            resolution,
            registry=registry,
            days=days,
            as_of=as_of,
            target_density=target_density,
            ring=config.h3.density_ring,
        )
        logger.info(f"✅ STEP 5-7: {len(cells)} grid rows")
        log_memory_checkpoint(logger, "after aggregate", context_id=run_id, cells=len(cells))

        # STEP 8: Write
        grid_repo = GridTableRepository(pipeline, create_duckdb_repository(config.analytics))
        written = grid_repo.write(resolution, cells)
        logger.info(f"✅ STEP 8: Grid table written to {written['path']}")

        return {
            "success": True,
            "result": {
                "run_id": run_id,
                "resolution": resolution,
                "path": written["path"],
                "row_count": written["row_count"],
                "file_size_bytes": written["file_size_bytes"],
                "first_date": cells[0].date if cells else None,
                "last_date": cells[-1].date if cells else None,
                "source": {
                    "path": source.path,
                    "format": source.format,
                    "records": len(source.records),
                    "corrupt_lines": source.corrupt_lines,
                },
                "normalization": norm_stats.to_dict(),
                "aggregation": agg_stats.to_dict(),
                "registry_hotspots": len(registry),
            }
        }

    except ContractViolationError:
        raise

    except Exception as e:
        logger.error(f"❌ Grid refresh failed: {e}", exc_info=True)
        return {
            "success": False,
            "error": f"Grid refresh failed: {str(e)}",
            "error_type": type(e).__name__
        }

    finally:
        clear_checkpoint_context(run_id)


# Export for handler registration
__all__ = ['h3_reward_grid_refresh', 'build_grid_cells']
