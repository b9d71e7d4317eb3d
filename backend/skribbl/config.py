import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO ("" picks eventlet or threading, see server.create_app)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    # Storage (defaults to in-memory when empty)
    DATABASE_URL = os.environ.get("DATABASE_URL", "")
    SQL_DEBUG = os.environ.get("SQL_DEBUG", "0") == "1"

    # Game
    DEFAULT_DRAW_TIME_SEC = int(os.environ.get("DEFAULT_DRAW_TIME_SEC", "80"))
    DEFAULT_MAX_ROUNDS = int(os.environ.get("DEFAULT_MAX_ROUNDS", "3"))
    DRAW_TIME_RANGE = (30, 300)
    MAX_ROUNDS_RANGE = (1, 10)
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))
    WORD_CHOICES_COUNT = int(os.environ.get("WORD_CHOICES_COUNT", "3"))
    CHOOSE_DURATION_SEC = int(os.environ.get("CHOOSE_DURATION_SEC", "10"))
    ROUND_END_DELAY_SEC = int(os.environ.get("ROUND_END_DELAY_SEC", "3"))
    ALL_GUESSED_DELAY_SEC = int(os.environ.get("ALL_GUESSED_DELAY_SEC", "3"))
    DRAWER_BONUS = 25
    DRAWING_DATA_MAX = 5000
    DRAWING_DATA_KEEP = 4000

    # Housekeeping
    SWEEP_INTERVAL_SEC = int(os.environ.get("SWEEP_INTERVAL_SEC", "1800"))
    FINISHED_ROOM_TTL_SEC = int(os.environ.get("FINISHED_ROOM_TTL_SEC", "3600"))

    # Rate limits: action -> (max events, window seconds)
    RATE_LIMITS = {
        "join": (5, 10.0),
        "chat": (10, 5.0),
        "draw": (100, 1.0),
    }
