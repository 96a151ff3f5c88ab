"""
Temporal Smoother.

Per-cell trailing 3-day means of total and proof-of-coverage rewards,
plus the transmit-scale hint.

Rows are grouped by cell and ordered by date; the mean at position i covers
rows max(0, i-2)..i of that cell's own series. Missing calendar days are
not filled in: the window counts rows, not days.
"""

from collections import defaultdict
from typing import Dict, List

from core.logic import trailing_mean, transmit_scale
from core.models import HexDayCell

MOVING_AVERAGE_WINDOW = 3


def smooth_cells(cells: List[HexDayCell], window: int = MOVING_AVERAGE_WINDOW) -> List[HexDayCell]:
    """
    Fill ma_3d_total and ma_3d_poc on every grid row.

    Args:
        cells: Grid rows for any number of cells and days
        window: Trailing window length in rows

    Returns:
        The same rows, updated in place
    """
    by_cell: Dict[str, List[HexDayCell]] = defaultdict(list)
    for cell in cells:
        by_cell[cell.hex].append(cell)

    for series in by_cell.values():
        series.sort(key=lambda c: c.date)
        totals = trailing_mean([c.total_rewards for c in series], window)
        pocs = trailing_mean([c.poc_rewards for c in series], window)
        for cell, total, poc in zip(series, totals, pocs):
            cell.ma_3d_total = total
            cell.ma_3d_poc = poc

    return cells


def apply_transmit_scale(cells: List[HexDayCell], target_density: float = 1.0) -> List[HexDayCell]:
    """Set transmit_scale_approx from each row's observed hotspot_count."""
    for cell in cells:
        cell.transmit_scale_approx = transmit_scale(cell.hotspot_count, target_density)
    return cells
