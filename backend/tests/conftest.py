import os
import sys
import random
import pytest

# Ensure the backend root (containing the `colordarts` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from colordarts import create_app, socketio
from colordarts.services.games.colors import Color
from colordarts.services.games.coordinator import GameCoordinator


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    LOG_LEVEL = 'DEBUG'
    MAX_PLAYERS = 4
    MIN_PLAYERS = 2
    ROOM_CODE_LENGTH = 4
    MIX_WEIGHT = 0.3
    WHEEL_RADIUS = 3.0
    DEFAULT_COLOR_TOLERANCE = 30
    DEFAULT_MAX_THROWS = 10
    DEFAULT_DART_SPEED = 50
    DEFAULT_DIFFICULTY = 'medium'
    TRUST_CLIENT_HIT_COLOR = True
    REGENERATE_TARGET_ON_REPLAY = True
    ENFORCE_MAX_THROWS = False


TARGET = Color(200, 40, 40)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Pin the target so throws in tests never win by accident
    application.extensions['coordinator'].color_factory = lambda: TARGET
    with application.app_context():
        yield application
        application.extensions['coordinator'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def coordinator():
    return GameCoordinator(color_factory=lambda: TARGET, rng=random.Random(1234))
