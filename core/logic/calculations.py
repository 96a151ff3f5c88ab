# ============================================================================
# REWARD GRID CALCULATIONS
# ============================================================================
# STATUS: Core - Pure calculation functions
# PURPOSE: Emission rounding, trailing means, transmit-scale hint
# ============================================================================
"""
Reward Grid Calculations.

All functions are pure and operate on plain values.

Exports:
    round_half_up: Round to the nearest integer, ties away from zero
    trailing_mean: Trailing moving average over a date-ordered series
    transmit_scale: Transmit-power scale hint from hotspot density
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

import pandas as pd


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with .5 going away from zero.

    Python's round() is banker's rounding (round(2.5) == 2); emitted
    reward amounts follow the usual half-up convention instead.

    Args:
        value: Finite number

    Returns:
        Rounded integer
    """
    return int(Decimal(repr(float(value))).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def trailing_mean(
    values: Sequence[float],
    window: int = 3,
    require_full_window: bool = False
) -> List[Optional[float]]:
    """
    Trailing moving average.

    Element i is the mean of values[max(0, i - window + 1) .. i], so the
    first elements average over however many values exist so far:

        trailing_mean([10, 20, 30, 40, 50]) == [10, 15, 20, 30, 40]

    With require_full_window=True the first window-1 elements are None
    instead (the charting convention); grid tables persist the prefix form.

    Args:
        values: Date-ordered series
        window: Window length in elements
        require_full_window: Emit None until a full window exists

    Returns:
        List the same length as values
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    if len(values) == 0:
        return []

    min_periods = window if require_full_window else 1
    rolled = pd.Series(values, dtype="float64").rolling(window, min_periods=min_periods).mean()
    return [None if pd.isna(v) else float(v) for v in rolled]


def transmit_scale(hotspot_count: int, target_density: float = 1.0) -> float:
    """
    Transmit-power scale hint for a cell.

    min(1, target_density / hotspot_count) for occupied cells, 0 for empty ones.

    Args:
        hotspot_count: Hotspots observed in the cell
        target_density: Hotspots per cell at which the scale reaches 1

    Returns:
        Scale in [0, 1]
    """
    if hotspot_count <= 0:
        return 0.0
    return min(1.0, target_density / hotspot_count)
