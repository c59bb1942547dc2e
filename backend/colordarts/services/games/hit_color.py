import math
from typing import Mapping, Optional

from .colors import WHITE, Color, hsl_to_rgb

DEFAULT_WHEEL_RADIUS = 3.0
# Fraction of the radius painted pure white at the bullseye
CENTER_FRACTION = 0.05
WHEEL_LIGHTNESS = 50


def _board_coords(position: Mapping) -> tuple:
    # The board lies in the x/y plane; older clients report x/z instead
    second = 'y' if 'y' in position else 'z'
    return float(position['x']), float(position[second])


def resolve_hit_color(position: Mapping, wheel_radius: float = DEFAULT_WHEEL_RADIUS) -> Optional[Color]:
    """Sample the color wheel at a landing position.

    Angle around the centre picks the hue and distance from the centre
    picks the saturation. Returns None when the dart lands outside the
    wheel. Raises ``ValueError`` when the position lacks usable coordinates.
    """
    try:
        x, y = _board_coords(position)
    except (KeyError, TypeError, ValueError):
        raise ValueError(f'Invalid hit position: {position!r}')

    distance = math.hypot(x, y)
    if math.isnan(distance) or distance > wheel_radius:
        return None
    if distance < wheel_radius * CENTER_FRACTION:
        return WHITE

    hue = (math.degrees(math.atan2(y, x)) + 360) % 360
    saturation = min(distance / wheel_radius, 1) * 100
    return hsl_to_rgb(hue, saturation, WHEEL_LIGHTNESS)
