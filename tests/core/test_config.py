from __future__ import annotations

import pytest
from pydantic import ValidationError

from scoregrid.core import GridSettings
from scoregrid.layout import LEFT, RIGHT, Parameters, Scale


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("GRID_MIN_LONG_LENGTH", "6")
    monkeypatch.setenv("GRID_ENFORCE_SHORT_SIDES", "true")

    settings = GridSettings()

    assert settings.min_long_length == 6.0
    assert settings.enforce_short_sides is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_bar_offset": 0},
        {"max_right_bar_pack_width": -0.5},
        {"max_length_ratio": 0.8},
        {"max_topology_iterations": 0},
    ],
)
def test_settings_reject_invalid_values(overrides):
    with pytest.raises(ValidationError):
        GridSettings(**overrides)


def test_parameters_scale_with_interline():
    params = Parameters.from_scale(Scale(20), GridSettings())

    assert params.min_long_length == 160
    assert params.max_distance_from_staff_side == 80
    assert params.max_left_bar_pack_width == 30
    assert params.max_pack_width(LEFT) == 30
    assert params.max_pack_width(RIGHT) == 10
    assert params.max_right_bar_pack_width == 10
    assert params.max_bar_coord_gap == 50
    assert params.max_bar_pos_gap == 4
    assert params.enforce_short_sides is False
