"""
Model tests: canonical row invariants, measure accessors, query request
validation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.models import (
    GRID_TABLE_COLUMNS,
    MEASURE_ACCESSORS,
    CanonicalDailyRow,
    GridQueryRequest,
    HexDayCell,
    MeasureField,
    NormalizationStats,
    RegionPolygon,
    measure_value,
)


class TestCanonicalDailyRow:

    def test_total_filled_from_categories(self):
        row = CanonicalDailyRow(date="2024-03-01", hotspot="hs", beacon=1, witness=2, dc_transfer=3)
        assert row.total_rewards == 6
        assert row.poc_rewards == 3

    def test_explicit_total_kept(self):
        row = CanonicalDailyRow(
            date="2024-03-01", hotspot="hs", beacon=1, total_rewards=9, explicit_total=True
        )
        assert row.total_rewards == 9

    @pytest.mark.parametrize("field,value", [
        ("beacon", -1),
        ("witness", float("nan")),
        ("dc_transfer", float("inf")),
    ])
    def test_amounts_finite_non_negative(self, field, value):
        with pytest.raises(PydanticValidationError):
            CanonicalDailyRow(date="2024-03-01", hotspot="hs", **{field: value})

    def test_date_format(self):
        with pytest.raises(PydanticValidationError):
            CanonicalDailyRow(date="03/01/2024", hotspot="hs")

    def test_hotspot_required(self):
        with pytest.raises(PydanticValidationError):
            CanonicalDailyRow(date="2024-03-01", hotspot="")


class TestMeasureAccessors:

    def test_every_field_has_accessor(self):
        assert set(MEASURE_ACCESSORS) == set(MeasureField)

    def test_every_field_is_a_grid_column(self):
        assert {f.value for f in MeasureField} <= set(GRID_TABLE_COLUMNS)

    def test_accessors_read_matching_column(self):
        cell = HexDayCell(
            date="2024-03-01", hex="x", res=8, lat=0, lon=0,
            beacon=1, witness=2, dc_transfer=3, poc_rewards=4, total_rewards=5,
            hotspot_count=6, registered_hotspots=7, density_k1=8,
            ma_3d_total=9, ma_3d_poc=10, transmit_scale_approx=0.5,
        )
        for field in MeasureField:
            assert measure_value(cell, field) == float(getattr(cell, field.value))

    def test_unset_moving_average_reads_zero(self):
        cell = HexDayCell(date="2024-03-01", hex="x", res=8, lat=0, lon=0)
        assert measure_value(cell, MeasureField.MA_3D_TOTAL) == 0.0
        assert measure_value(cell, MeasureField.MA_3D_POC) == 0.0

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            MeasureField("__class__")


class TestGridQueryRequest:

    def test_defaults(self):
        request = GridQueryRequest()
        assert request.field == MeasureField.TOTAL_REWARDS
        assert not request.has_selection

    def test_hexes_stripped(self):
        request = GridQueryRequest(hexes=[" a ", "", "  ", "b"])
        assert request.hexes == ["a", "b"]
        assert request.has_selection

    def test_degenerate_polygon_is_not_a_selection(self):
        request = GridQueryRequest(polygon=RegionPolygon(vertices=[(0, 0), (1, 1)]))
        assert not request.has_selection

    def test_polygon_selection(self):
        request = GridQueryRequest(polygon=RegionPolygon(vertices=[(0, 0), (0, 1), (1, 1)]))
        assert request.has_selection

    @pytest.mark.parametrize("field", ["date_from", "date_to", "start_date"])
    def test_bad_dates_rejected(self, field):
        with pytest.raises(PydanticValidationError):
            GridQueryRequest(**{field: "yesterday"})

    def test_resolution_range(self):
        with pytest.raises(PydanticValidationError):
            GridQueryRequest(resolution=16)


class TestStats:

    def test_skipped_total(self):
        stats = NormalizationStats(
            skipped_missing_date=1, skipped_missing_hotspot=2, skipped_invalid=3
        )
        assert stats.skipped == 6
