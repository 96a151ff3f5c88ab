"""
Infrastructure Package - Lazy Loading Implementation.

Repositories for the reward grid: raw reward sources, the hotspot registry,
persisted grid tables, forecast files and the DuckDB engine that reads them.

Imports are deferred until a name is first accessed so that importing the
package never opens DuckDB or reads configuration.

Exports:
    DuckDBRepository, IDuckDBRepository, create_duckdb_repository
    GridTableRepository
    ForecastRepository
    HotspotRegistryRepository
    RewardSourceRepository
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .duckdb import DuckDBRepository as _DuckDBRepository
    from .grid_table_repository import GridTableRepository as _GridTableRepository
    from .forecast_repository import ForecastRepository as _ForecastRepository
    from .hotspot_registry import HotspotRegistryRepository as _HotspotRegistryRepository
    from .reward_source import RewardSourceRepository as _RewardSourceRepository


def __getattr__(name: str):
    """
    Lazy import mechanism - only imports when actually accessed.
    """
    if name in ("DuckDBRepository", "IDuckDBRepository", "create_duckdb_repository"):
        from . import duckdb as _duckdb
        return getattr(_duckdb, name)
    elif name == "GridTableRepository":
        from .grid_table_repository import GridTableRepository
        return GridTableRepository
    elif name == "ForecastRepository":
        from .forecast_repository import ForecastRepository
        return ForecastRepository
    elif name == "HotspotRegistryRepository":
        from .hotspot_registry import HotspotRegistryRepository
        return HotspotRegistryRepository
    elif name == "RewardSourceRepository":
        from .reward_source import RewardSourceRepository
        return RewardSourceRepository
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "DuckDBRepository",
    "IDuckDBRepository",
    "create_duckdb_repository",
    "GridTableRepository",
    "ForecastRepository",
    "HotspotRegistryRepository",
    "RewardSourceRepository",
]
