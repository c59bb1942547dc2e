import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from colordarts.config import Config

socketio = SocketIO(async_mode=None)


def get_coordinator(flask_app):
    return flask_app.extensions['coordinator']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One coordinator per app; all room state lives here for the process lifetime
    from colordarts.services.games.coordinator import GameCoordinator
    flask_app.extensions['coordinator'] = GameCoordinator.from_config(flask_app.config, logger=flask_app.logger)

    from colordarts.main import main
    flask_app.register_blueprint(main)

    from colordarts.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from colordarts.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    return flask_app
