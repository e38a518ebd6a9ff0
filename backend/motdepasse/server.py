from __future__ import annotations

import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.models import RoomSettings, TeamMode
from .game.registry import RoomRegistry
from .game.timers import SocketIOScheduler, TimerService
from .game.words import WordBank
from .realtime.broadcaster import SocketIOBroadcaster
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .routes.words import bp as words_bp


def _default_settings(config) -> RoomSettings:
    return RoomSettings(
        total_rounds=int(config.get("TOTAL_ROUNDS", 10)),
        turn_seconds=int(config.get("TURN_DURATION_SEC", 30)),
        steal_seconds=int(config.get("STEAL_DURATION_SEC", 15)),
        team_mode=TeamMode(config.get("TEAM_MODE", "pairs")),
        max_clues=int(config.get("MAX_CLUES", 3)),
        result_delay_seconds=float(config.get("RESULT_DELAY_SEC", 3)),
    )


def create_app(config_class=Config, scheduler=None, word_bank: WordBank | None = None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    env_async_mode = app.config.get("SOCKETIO_ASYNC_MODE", "")
    if env_async_mode:
        async_mode = env_async_mode
    else:
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

    scheduler = scheduler or SocketIOScheduler(socketio)
    registry = RoomRegistry(
        SocketIOBroadcaster(socketio),
        scheduler,
        word_bank or WordBank(policy=app.config.get("WORD_EXHAUSTION_POLICY", "reuse")),
        timers=TimerService(scheduler),
        defaults=_default_settings(app.config),
        max_players=int(app.config.get("MAX_PLAYERS", 8)),
    )
    app.extensions["room_registry"] = registry

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(words_bp, url_prefix="/api")

    register_socketio_handlers(socketio, registry)

    return app, socketio
