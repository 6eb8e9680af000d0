"""Tests for friction loss and total dynamic head."""

import pytest

from pump_advisor.sizing.hydraulics import calculate_friction_loss, calculate_tdh
from tests.conftest import make_data


class TestFrictionLoss:
    def test_formula(self):
        assert calculate_friction_loss(2.0, 400, 1.0) == pytest.approx(0.02 * 400 * 4)

    @pytest.mark.parametrize("length,size", [(None, 1.0), (400, None), (0, 1.0), (400, 0)])
    def test_missing_pipe_data_is_zero(self, length, size):
        assert calculate_friction_loss(2.0, length, size) == 0.0


class TestTDH:
    def test_sum_of_levels(self):
        data = make_data(static_water_level=50, drawdown_level=5, elevation_gain=10)
        assert calculate_tdh(data, required_gpm=2.0) == pytest.approx(65)

    def test_includes_friction(self):
        data = make_data(
            static_water_level=50, drawdown_level=5, elevation_gain=10,
            pipe_length=200, pipe_size=2.0,
        )
        assert calculate_tdh(data, required_gpm=3.0) == pytest.approx(65 + 0.02 * 100 * 9)

    def test_unanswered_levels_are_zero(self):
        data = make_data(static_water_level=None, drawdown_level=None, elevation_gain=None)
        assert calculate_tdh(data, required_gpm=2.0) == 0.0

    def test_custom_head_wins(self):
        data = make_data(custom_head=90.0, pipe_length=200, pipe_size=1.0)
        assert calculate_tdh(data, required_gpm=3.0) == 90.0

    def test_zero_custom_head_is_respected(self):
        data = make_data(custom_head=0.0)
        assert calculate_tdh(data, required_gpm=3.0) == 0.0
