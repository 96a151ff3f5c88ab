"""
Pure calculation tests: half-up rounding, trailing means, transmit scale.
"""

import pytest

from core.logic import round_half_up, trailing_mean, transmit_scale


class TestRoundHalfUp:

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (2.4999, 2),
        (0.0, 0),
        (123456789.5, 123456790),
        (-0.5, -1),
    ])
    def test_values(self, value, expected):
        assert round_half_up(value) == expected

    def test_differs_from_builtin_round(self):
        assert round(2.5) == 2
        assert round_half_up(2.5) == 3


class TestTrailingMean:

    def test_prefix_window(self):
        assert trailing_mean([10, 20, 30, 40, 50]) == [10, 15, 20, 30, 40]

    def test_full_window_variant(self):
        assert trailing_mean([10, 20, 30, 40, 50], require_full_window=True) == [
            None, None, 20, 30, 40,
        ]

    def test_single_value(self):
        assert trailing_mean([7]) == [7]

    def test_empty(self):
        assert trailing_mean([]) == []

    def test_window_one_is_identity(self):
        assert trailing_mean([3, 1, 4], window=1) == [3, 1, 4]

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            trailing_mean([1, 2], window=0)


class TestTransmitScale:

    @pytest.mark.parametrize("count,target,expected", [
        (0, 1.0, 0.0),
        (1, 1.0, 1.0),
        (2, 1.0, 0.5),
        (4, 1.0, 0.25),
        (1, 3.0, 1.0),
        (6, 3.0, 0.5),
    ])
    def test_values(self, count, target, expected):
        assert transmit_scale(count, target) == pytest.approx(expected)

    def test_never_exceeds_one(self):
        assert all(transmit_scale(n, 10.0) <= 1.0 for n in range(1, 50))
