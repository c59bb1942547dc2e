import math

import pytest

from colordarts.services.games.colors import WHITE, Color
from colordarts.services.games.hit_color import resolve_hit_color


def _at(angle_deg, distance):
    rad = math.radians(angle_deg)
    return {'x': distance * math.cos(rad), 'y': distance * math.sin(rad), 'z': 0}


def test_outside_wheel_is_a_miss():
    assert resolve_hit_color({'x': 3.01, 'y': 0}) is None
    assert resolve_hit_color({'x': 2.5, 'y': 2.5}) is None
    assert resolve_hit_color(_at(90, 10)) is None


def test_inside_wheel_always_yields_a_color():
    for angle in range(0, 360, 15):
        for distance in (0.2, 1.0, 2.0, 2.99, 2.999):
            color = resolve_hit_color(_at(angle, distance))
            assert isinstance(color, Color)
            assert all(0 <= c <= 255 for c in (color.r, color.g, color.b))


def test_centre_is_white():
    assert resolve_hit_color({'x': 0, 'y': 0}) == WHITE
    assert resolve_hit_color({'x': 0.1, 'y': 0.05}) == WHITE


def test_angle_picks_hue():
    assert resolve_hit_color(_at(0, 3)) == Color(255, 0, 0)
    assert resolve_hit_color(_at(120, 2.999)) == Color(0, 255, 0)
    assert resolve_hit_color(_at(240, 2.999)) == Color(0, 0, 255)
    # Negative angles wrap around to the same hue
    assert resolve_hit_color(_at(-120, 2.999)) == resolve_hit_color(_at(240, 2.999))


def test_distance_picks_saturation():
    # Halfway out: 50% saturation red
    assert resolve_hit_color(_at(0, 1.5)) == Color(191, 64, 64)


def test_is_deterministic():
    position = {'x': 1.234, 'y': -0.987}
    assert resolve_hit_color(position) == resolve_hit_color(dict(position))


def test_falls_back_to_z_axis():
    assert resolve_hit_color({'x': 0, 'z': 3}) == resolve_hit_color({'x': 0, 'y': 3})


def test_custom_radius():
    assert resolve_hit_color({'x': 4, 'y': 0}) is None
    assert resolve_hit_color({'x': 4, 'y': 0}, wheel_radius=5) is not None


def test_bad_position_raises():
    with pytest.raises(ValueError):
        resolve_hit_color({'y': 1})
    with pytest.raises(ValueError):
        resolve_hit_color({'x': 'left', 'y': 1})
