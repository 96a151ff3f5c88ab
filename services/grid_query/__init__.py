# ============================================================================
# GRID QUERY MODULE
# ============================================================================
# STATUS: Service Module - interactive grid queries
# PURPOSE: Observed history and forecast scenario queries over grid tables
# EXPORTS: GridQueryService, RegionSelector, aggregate_scenario,
#          CancellationToken, QueryDebouncer
# ============================================================================
"""
Grid Query Module.

Usage:
    from services.grid_query import GridQueryService
    service = GridQueryService(grid_repo, forecast_repo, config)
    response = service.query(request)
"""

from .cancellation import CancellationToken, QueryDebouncer
from .region_selector import RegionSelector
from .scenario import adjust_row, aggregate_scenario, relative_uncertainty
from .query_service import GridQueryService, observed_totals

__all__ = [
    'CancellationToken',
    'QueryDebouncer',
    'RegionSelector',
    'adjust_row',
    'aggregate_scenario',
    'relative_uncertainty',
    'GridQueryService',
    'observed_totals',
]
