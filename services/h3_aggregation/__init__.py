# ============================================================================
# H3 AGGREGATION MODULE
# ============================================================================
# STATUS: Service Module - reward grid pipeline
# PURPOSE: Aggregate reward rows onto H3 cells with density and trend features
# EXPORTS: ALL_HANDLERS, HexGridAggregator, build_static_index, density_k1,
#          attach_density, smooth_cells, build_grid_cells
# DEPENDENCIES: h3, pandas
# ============================================================================
"""
H3 Aggregation Module.

Pipeline:
    canonical rows → HexGridAggregator → DensityEngine → TemporalSmoother → grid table

Usage:
    # Register handlers in services/__init__.py
    from services.h3_aggregation import ALL_HANDLERS as H3_AGG_HANDLERS
    ALL_HANDLERS.update(H3_AGG_HANDLERS)

Handlers:
    h3_reward_grid_refresh: Rebuild the grid table for one resolution
"""

from typing import Dict, Callable

from .hex_aggregator import HexGridAggregator, aggregate_rows
from .density import attach_density, build_static_index, density_k1, ring_neighbors
from .smoothing import apply_transmit_scale, smooth_cells
from .handler_refresh import build_grid_cells, h3_reward_grid_refresh

# Handler registry for this module
ALL_HANDLERS: Dict[str, Callable] = {
    "h3_reward_grid_refresh": h3_reward_grid_refresh,
}

__all__ = [
    'ALL_HANDLERS',
    'HexGridAggregator',
    'aggregate_rows',
    'attach_density',
    'build_static_index',
    'density_k1',
    'ring_neighbors',
    'apply_transmit_scale',
    'smooth_cells',
    'build_grid_cells',
    'h3_reward_grid_refresh',
]
