import random
import string
from numbers import Real
from typing import Any, Dict, Optional

from colordarts.models import DIFFICULTIES, SETTING_FIELDS
from .colors import MAX_COLOR_DISTANCE

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_NAME_LENGTH = 20


def generate_room_code(length: int = 4, rng=None) -> str:
    rng = rng or random
    return ''.join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(code: Any) -> Optional[str]:
    if not isinstance(code, str):
        return None
    return code.strip().upper()


def is_valid_room_code(code: Any, length: int = 4) -> bool:
    return (
        isinstance(code, str)
        and len(code) == length
        and all(c in ROOM_CODE_ALPHABET for c in code)
    )


def is_valid_player_name(name: Any) -> bool:
    return isinstance(name, str) and 1 <= len(name.strip()) <= MAX_NAME_LENGTH


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_settings(settings: Any) -> Optional[str]:
    """Return an error message for a bad settings patch, or None when it is fine."""
    if not isinstance(settings, dict):
        return 'Settings must be an object'
    unknown = sorted(set(settings) - set(SETTING_FIELDS))
    if unknown:
        return f"Unknown settings: {', '.join(unknown)}"

    tolerance = settings.get('colorTolerance')
    if 'colorTolerance' in settings and not (_is_number(tolerance) and 0 < tolerance <= MAX_COLOR_DISTANCE):
        return f'colorTolerance must be between 0 and {MAX_COLOR_DISTANCE:.2f}'

    max_throws = settings.get('maxThrows')
    if 'maxThrows' in settings and not (
        isinstance(max_throws, int) and not isinstance(max_throws, bool) and 1 <= max_throws <= 100
    ):
        return 'maxThrows must be a whole number between 1 and 100'

    speed = settings.get('dartSpeed')
    if 'dartSpeed' in settings and not (_is_number(speed) and 1 <= speed <= 100):
        return 'dartSpeed must be between 1 and 100'

    if 'difficulty' in settings and settings['difficulty'] not in DIFFICULTIES:
        return f"difficulty must be one of: {', '.join(DIFFICULTIES)}"
    return None


def settings_from_config(config) -> Dict[str, Any]:
    return {
        'color_tolerance': float(config.get('DEFAULT_COLOR_TOLERANCE', 30)),
        'max_throws': int(config.get('DEFAULT_MAX_THROWS', 10)),
        'dart_speed': int(config.get('DEFAULT_DART_SPEED', 50)),
        'difficulty': config.get('DEFAULT_DIFFICULTY', 'medium'),
    }
