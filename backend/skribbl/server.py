from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Any

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.engine import TurnEngine
from .game.store import RoomSessionStore
from .game.timers import TimerHandle
from .game.words import DEFAULT_WORDS, WordSupplier
from .realtime.broadcast import Broadcaster
from .realtime.handlers import register_socketio_handlers
from .realtime.scheduler import SocketIOScheduler
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .routes.words import bp as words_bp
from .storage import PersistenceGateway, create_gateway
from .utils.ratelimit import RateLimiter


def _async_mode(configured: str) -> str:
    if configured:
        return configured
    # Windows and Python >= 3.13: threading (eventlet lags behind there).
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(
    config_class: type = Config,
    *,
    gateway: PersistenceGateway | None = None,
    scheduler: Any = None,
    rng: random.Random | None = None,
) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_async_mode(app.config.get("SOCKETIO_ASYNC_MODE", "")),
    )

    rng = rng or random.Random()
    scheduler = scheduler or SocketIOScheduler(socketio)
    gateway = gateway or create_gateway(app.config)
    store = RoomSessionStore(gateway, rng=rng)
    words = WordSupplier(gateway, fallback=DEFAULT_WORDS, rng=rng)
    engine = TurnEngine(
        store,
        words,
        gateway,
        Broadcaster(socketio),
        scheduler,
        config=app.config,
        rng=rng,
    )
    limiter = RateLimiter()

    app.extensions["skribbl"] = {
        "engine": engine,
        "store": store,
        "words": words,
        "limiter": limiter,
        "socketio": socketio,
    }

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(words_bp, url_prefix="/api")

    register_socketio_handlers(socketio, engine, limiter)

    if not app.config.get("TESTING", False):
        engine.start_housekeeping()
        scheduler.call_every(60, limiter.cleanup, handle=TimerHandle("ratelimit-cleanup"))

    if dist_dir.exists():
        @app.get("/")
        def index():
            return send_from_directory(dist_dir, "index.html")

        @app.get("/<path:path>")
        def static_proxy(path: str):
            file_path = dist_dir / path
            if file_path.exists() and file_path.is_file():
                return send_from_directory(dist_dir, path)
            return send_from_directory(dist_dir, "index.html")

    return app, socketio
