"""
Randomized reward factories: anti-overfitting design.

Every factory call randomizes the fields a test does not pin (amounts,
hotspot suffixes, jitter inside a cell) so tests cannot rely on specific
default values.
"""

import random
import string
from datetime import date, timedelta
from typing import Dict, List, Optional

import h3

# Downtown San Francisco; well away from any H3 pentagon
BASE_LAT = 37.7749
BASE_LON = -122.4194


def _random_suffix(length: int = 8) -> str:
    """Generate random alphanumeric suffix."""
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def random_hotspot() -> str:
    return f"11{_random_suffix(40)}"


def day(offset: int, start: date = date(2024, 3, 1)) -> str:
    """ISO date ``offset`` days after ``start``."""
    return (start + timedelta(days=offset)).isoformat()


def make_raw_record(
    date_str: Optional[str] = None,
    hotspot: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    nested: bool = False,
    **overrides
) -> Dict:
    """
    Build a raw upstream reward payload with bone amounts.

    Args:
        date_str: Reward day (random March 2024 day if None)
        hotspot: Hotspot key (random if None)
        lat, lon: Carried coordinates (omitted if None)
        nested: Put amounts under reward_detail like the ledger export does
        **overrides: Any top-level key

    Returns:
        dict payload for RewardNormalizer.normalize
    """
    amounts = {
        "beacon_amount": random.randint(0, 5_000_000),
        "witness_amount": random.randint(0, 20_000_000),
        "dc_transfer_amount": random.randint(0, 1_000_000),
    }
    record: Dict = {
        "end_period": f"{date_str or day(random.randint(0, 27))}T00:00:00Z",
    }
    if nested:
        record["reward_detail"] = {"hotspot_key": hotspot or random_hotspot(), **amounts}
    else:
        record["hotspot_key"] = hotspot or random_hotspot()
        record.update(amounts)
    if lat is not None:
        record["lat"] = lat
    if lon is not None:
        record["lon"] = lon
    record.update(overrides)
    return record


def point_in_cell(cell: str, jitter: bool = True):
    """
    A (lat, lon) that maps back to ``cell``.

    With jitter the point is nudged a little off the centroid, staying
    inside the cell.
    """
    lat, lon = h3.cell_to_latlng(cell)
    if not jitter:
        return lat, lon
    res = h3.get_resolution(cell)
    # Roughly a tenth of the cell edge
    step = h3.average_hexagon_edge_length(res, unit="km") / 111.0 / 10.0
    for _ in range(20):
        candidate = (lat + random.uniform(-step, step), lon + random.uniform(-step, step))
        if h3.latlng_to_cell(candidate[0], candidate[1], res) == cell:
            return candidate
    return lat, lon


def make_rows_for_cells(
    cells: List[str],
    days: int = 3,
    hotspots_per_cell: int = 2
) -> List[Dict]:
    """
    Raw payloads spread over several cells and days, coordinates carried.

    Returns:
        list of dict payloads
    """
    records = []
    for cell in cells:
        hotspots = [random_hotspot() for _ in range(hotspots_per_cell)]
        for offset in range(days):
            for hotspot in hotspots:
                lat, lon = point_in_cell(cell)
                records.append(make_raw_record(day(offset), hotspot, lat=lat, lon=lon))
    return records


def make_registry_entries(cells: List[str], per_cell: int = 1) -> List[Dict]:
    """Registry JSON entries with ``per_cell`` hotspots placed inside each cell."""
    entries = []
    for cell in cells:
        for _ in range(per_cell):
            lat, lon = point_in_cell(cell)
            entries.append({
                "hotspot": random_hotspot(),
                "lat": lat,
                "lon": lon,
                "gain": random.choice([12, 23, 36, 40, 58]),
            })
    return entries


def base_cell(resolution: int = 8) -> str:
    return h3.latlng_to_cell(BASE_LAT, BASE_LON, resolution)
