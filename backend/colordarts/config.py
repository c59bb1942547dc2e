import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if o.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Room capacity and start threshold
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '4'))
    # Fraction a hit pulls the player's color toward the sampled color
    MIX_WEIGHT = float(os.environ.get('MIX_WEIGHT', '0.3'))
    WHEEL_RADIUS = float(os.environ.get('WHEEL_RADIUS', '3.0'))
    # Defaults for new rooms; the host can change them while waiting
    DEFAULT_COLOR_TOLERANCE = float(os.environ.get('DEFAULT_COLOR_TOLERANCE', '30'))
    DEFAULT_MAX_THROWS = int(os.environ.get('DEFAULT_MAX_THROWS', '10'))
    DEFAULT_DART_SPEED = int(os.environ.get('DEFAULT_DART_SPEED', '50'))
    DEFAULT_DIFFICULTY = os.environ.get('DEFAULT_DIFFICULTY', 'medium')
    # When off, client-supplied hit colors are ignored and resolved from the hit position
    TRUST_CLIENT_HIT_COLOR = _env_bool('TRUST_CLIENT_HIT_COLOR', True)
    REGENERATE_TARGET_ON_REPLAY = _env_bool('REGENERATE_TARGET_ON_REPLAY', True)
    ENFORCE_MAX_THROWS = _env_bool('ENFORCE_MAX_THROWS', False)
