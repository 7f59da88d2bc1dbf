from __future__ import annotations

import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.registry import RoomRegistry
from .game.service import GameService
from .game.words import WordCatalog
from .realtime.emitter import SocketIOEmitter
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp


def create_app(config_class=Config) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    async_mode = app.config.get("SOCKETIO_ASYNC_MODE", "")
    if not async_mode:
        # Default choice:
        # - Windows: threading (eventlet has known compatibility issues on newer Python)
        # - Python >= 3.13: threading (safer default)
        # - Otherwise: eventlet
        if sys.platform.startswith("win") or sys.version_info >= (3, 13):
            async_mode = "threading"
        else:
            async_mode = "eventlet"

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode,
    )

    registry = RoomRegistry(
        code_length=app.config["ROOM_CODE_LENGTH"],
        default_max_rounds=app.config["DEFAULT_MAX_ROUNDS"],
        default_min_players_for_imposter_win=app.config["DEFAULT_MIN_PLAYERS_FOR_IMPOSTER_WIN"],
    )
    catalog = WordCatalog.load(app.config.get("WORDS_FILE"))

    # Turn timers only count down in the background outside of tests.
    spawn = None if app.config.get("TESTING") else socketio.start_background_task

    service = GameService(
        registry=registry,
        catalog=catalog,
        emitter=SocketIOEmitter(socketio),
        config=app.config,
        spawn=spawn,
        sleep=socketio.sleep,
    )
    app.extensions["imposter"] = service
    app.logger.info("[startup] async_mode=%s words=%d", async_mode, len(catalog))

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, service, nickname_max_chars=app.config["NICKNAME_MAX_CHARS"])

    return app, socketio
