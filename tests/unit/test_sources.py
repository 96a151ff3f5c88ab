"""
RewardSourceRepository and HotspotRegistryRepository tests.

File formats, corrupt-line tolerance, registry layouts and the missing
file policies (missing rewards is an error, a missing registry is not).
"""

import json

import pandas as pd
import pytest

from exceptions import PipelineError, ResourceNotFoundError
from infrastructure.hotspot_registry import HotspotRegistryRepository, valid_coordinates
from infrastructure.reward_source import RewardSourceRepository
from tests.factories.reward_factories import make_raw_record


class TestRewardSource:

    def test_json_lines_with_corrupt_lines(self, tmp_path):
        path = tmp_path / "rewards.jsonl"
        good = [make_raw_record() for _ in range(3)]
        lines = [json.dumps(good[0]), "{not json", "", json.dumps(good[1]), "[1, 2]",
                 json.dumps(good[2]), '{"truncated": ']
        path.write_text("\n".join(lines), encoding="utf-8")

        loaded = RewardSourceRepository(path).load()
        assert loaded.format == "jsonl"
        assert loaded.records == good
        assert loaded.corrupt_lines == 3

    def test_json_array(self, tmp_path):
        path = tmp_path / "rewards.json"
        records = [make_raw_record() for _ in range(4)]
        path.write_text(json.dumps(records + ["junk"]), encoding="utf-8")

        loaded = RewardSourceRepository(path).load()
        assert loaded.format == "json"
        assert loaded.records == records
        assert loaded.corrupt_lines == 1

    def test_corrupt_json_array_fatal(self, tmp_path):
        path = tmp_path / "rewards.json"
        path.write_text('[{"a": 1}, {"b": ', encoding="utf-8")
        with pytest.raises(PipelineError):
            RewardSourceRepository(path).load()

    def test_parquet_nulls_become_none(self, tmp_path):
        path = tmp_path / "rewards.parquet"
        pd.DataFrame([
            {"date": "2024-03-01", "hotspot": "a", "beacon_amount": 5.0},
            {"date": "2024-03-02", "hotspot": "b", "beacon_amount": None},
        ]).to_parquet(path, index=False)

        loaded = RewardSourceRepository(path).load()
        assert loaded.format == "parquet"
        assert loaded.records[1]["beacon_amount"] is None
        assert loaded.records[0]["beacon_amount"] == 5.0

    def test_missing_source(self, tmp_path):
        with pytest.raises(ResourceNotFoundError):
            RewardSourceRepository(tmp_path / "nope.jsonl").load()


class TestHotspotRegistry:

    def test_mapping_layout(self, tmp_path):
        path = tmp_path / "hotspots.json"
        path.write_text(json.dumps({
            "hs-1": {"lat": 37.7, "lon": -122.4, "gain": 12},
            "hs-2": {"latitude": "37.8", "longitude": "-122.3"},
            "hs-3": {"lat": None, "lon": None},
        }), encoding="utf-8")

        registry = HotspotRegistryRepository(path).load()
        assert sorted(registry) == ["hs-1", "hs-2"]
        assert registry["hs-1"].gain == 12
        assert registry["hs-2"].lat == 37.8

    def test_array_layout(self, tmp_path):
        path = tmp_path / "hotspots.json"
        path.write_text(json.dumps([
            {"hotspot_key": "a", "lat": 1, "lng": 2},
            {"address": "b", "lat": 3, "long": 4},
            {"lat": 5, "lon": 6},
            "junk",
        ]), encoding="utf-8")

        registry = HotspotRegistryRepository(path).load()
        assert sorted(registry) == ["a", "b"]
        assert (registry["b"].lat, registry["b"].lon) == (3, 4)

    def test_json_lines_layout(self, tmp_path):
        path = tmp_path / "hotspots.jsonl"
        path.write_text(
            '{"hotspot": "a", "lat": 1, "lon": 2}\n{"hotspot": "b", "lat": 3, "lon": 4}\n',
            encoding="utf-8",
        )
        assert sorted(HotspotRegistryRepository(path).load()) == ["a", "b"]

    def test_out_of_range_dropped(self):
        registry = HotspotRegistryRepository.parse([
            {"hotspot": "ok", "lat": 10, "lon": 10},
            {"hotspot": "bad-lat", "lat": 91, "lon": 0},
            {"hotspot": "bad-lon", "lat": 0, "lon": 181},
            {"hotspot": "nan", "lat": "nan", "lon": 0},
        ])
        assert list(registry) == ["ok"]

    def test_missing_registry_is_empty(self, tmp_path):
        assert HotspotRegistryRepository(tmp_path / "absent.json").load() == {}
        assert HotspotRegistryRepository(None).load() == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "hotspots.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(PipelineError):
            HotspotRegistryRepository(path).load()


@pytest.mark.parametrize("lat,lon,expected", [
    (0, 0, True),
    (90, 180, True),
    (-90.0001, 0, False),
    (None, 0, False),
    (float("inf"), 0, False),
])
def test_valid_coordinates(lat, lon, expected):
    assert valid_coordinates(lat, lon) is expected
