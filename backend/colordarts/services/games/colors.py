"""RGB color value type and the color math used by rooms and the wheel.

All functions are pure. Colors are never mutated; mixing and conversion
always return a fresh ``Color``.
"""
import math
import random
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

_HEX_RE = re.compile(r'^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$', re.IGNORECASE)

# Black vs white
MAX_COLOR_DISTANCE = math.sqrt(3 * 255 ** 2)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _round(value: float) -> int:
    # Half-up rounding for channel values, matching what browsers render
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def to_dict(self):
        return {'r': self.r, 'g': self.g, 'b': self.b}

    @classmethod
    def from_payload(cls, payload: Any) -> 'Color':
        """Build a color from a client payload.

        Accepts a mapping with ``r``, ``g`` and ``b`` keys or a hex string.
        Channels are rounded and clamped to [0, 255]. Raises ``ValueError``
        for anything else.
        """
        if isinstance(payload, Color):
            return payload
        if isinstance(payload, str):
            parsed = hex_to_rgb(payload)
            if parsed is None:
                raise ValueError(f'Invalid hex color: {payload!r}')
            return parsed
        if isinstance(payload, dict):
            try:
                channels = [float(payload[k]) for k in ('r', 'g', 'b')]
            except (KeyError, TypeError, ValueError):
                raise ValueError(f'Invalid color payload: {payload!r}')
            if not all(math.isfinite(c) for c in channels):
                raise ValueError(f'Invalid color payload: {payload!r}')
            r, g, b = (int(_clamp(_round(c), 0, 255)) for c in channels)
            return cls(r, g, b)
        raise ValueError(f'Invalid color payload: {payload!r}')


NEUTRAL_GRAY = Color(128, 128, 128)
WHITE = Color(255, 255, 255)


def hsl_to_rgb(h: float, s: float, l: float) -> Color:
    """Convert HSL (h in [0, 360), s and l in [0, 100]) to RGB."""
    h /= 360.0
    s /= 100.0
    l /= 100.0

    def hue_to_rgb(p, q, t):
        if t < 0:
            t += 1
        if t > 1:
            t -= 1
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = hue_to_rgb(p, q, h + 1 / 3)
        g = hue_to_rgb(p, q, h)
        b = hue_to_rgb(p, q, h - 1 / 3)

    return Color(_round(r * 255), _round(g * 255), _round(b * 255))


def rgb_to_hsl(color: Color) -> Tuple[float, float, float]:
    """Inverse of :func:`hsl_to_rgb`. Achromatic colors get hue and saturation 0."""
    r = color.r / 255.0
    g = color.g / 255.0
    b = color.b / 255.0
    high = max(r, g, b)
    low = min(r, g, b)
    l = (high + low) / 2

    if high == low:
        return 0.0, 0.0, l * 100

    d = high - low
    s = d / (2 - high - low) if l > 0.5 else d / (high + low)
    if high == r:
        h = (g - b) / d + (6 if g < b else 0)
    elif high == g:
        h = (b - r) / d + 2
    else:
        h = (r - g) / d + 4
    h /= 6
    return h * 360, s * 100, l * 100


def mix_colors(a: Color, b: Color, weight: float = 0.5) -> Color:
    """Linear per-channel interpolation from ``a`` toward ``b`` by ``weight``."""
    keep = 1 - weight
    return Color(
        _round(a.r * keep + b.r * weight),
        _round(a.g * keep + b.g * weight),
        _round(a.b * keep + b.b * weight),
    )


def color_distance(a: Color, b: Color) -> float:
    dr = a.r - b.r
    dg = a.g - b.g
    db = a.b - b.b
    return math.sqrt(dr * dr + dg * dg + db * db)


def is_color_close(a: Color, b: Color, tolerance: float = 30) -> bool:
    return color_distance(a, b) <= tolerance


def generate_random_color(rng: Optional[random.Random] = None) -> Color:
    """Random vibrant color: saturation 70-100%, lightness 40-60%."""
    rng = rng or random
    hue = rng.random() * 360
    saturation = 70 + rng.random() * 30
    lightness = 40 + rng.random() * 20
    return hsl_to_rgb(hue, saturation, lightness)


def rgb_to_hex(color: Color) -> str:
    return '#' + ''.join(
        f'{int(_clamp(_round(c), 0, 255)):02x}' for c in (color.r, color.g, color.b)
    )


def hex_to_rgb(text: str) -> Optional[Color]:
    """Parse ``#rrggbb`` (hash optional). Returns None when malformed."""
    if not isinstance(text, str):
        return None
    match = _HEX_RE.match(text.strip())
    if not match:
        return None
    return Color(*(int(part, 16) for part in match.groups()))


def color_brightness(color: Color) -> int:
    return _round((color.r * 299 + color.g * 587 + color.b * 114) / 1000)


def contrast_color(color: Color) -> str:
    """Text color ('black' or 'white') that reads best on ``color``."""
    return 'black' if color_brightness(color) > 128 else 'white'


def adjust_brightness(color: Color, amount: float) -> Color:
    """Lighten (amount > 0) or darken (amount < 0) by a percentage in [-100, 100]."""
    factor = _clamp(amount, -100, 100) / 100
    if factor > 0:
        return Color(*(_round(c + (255 - c) * factor) for c in (color.r, color.g, color.b)))
    return Color(*(_round(c * (1 + factor)) for c in (color.r, color.g, color.b)))


def color_gradient(a: Color, b: Color, steps: int) -> List[Color]:
    if steps <= 0:
        return []
    if steps == 1:
        return [a]
    return [mix_colors(a, b, i / (steps - 1)) for i in range(steps)]
