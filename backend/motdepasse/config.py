import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO ("" picks eventlet or threading from the platform)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rooms
    MAX_PLAYERS = int(os.environ.get("MAX_PLAYERS", "8"))
    TEAM_MODE = os.environ.get("TEAM_MODE", "pairs")

    # Game
    TOTAL_ROUNDS = int(os.environ.get("TOTAL_ROUNDS", "10"))
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "30"))
    STEAL_DURATION_SEC = int(os.environ.get("STEAL_DURATION_SEC", "15"))
    RESULT_DELAY_SEC = float(os.environ.get("RESULT_DELAY_SEC", "3"))
    MAX_CLUES = int(os.environ.get("MAX_CLUES", "3"))

    # Words: reuse | cycle | fail
    WORD_EXHAUSTION_POLICY = os.environ.get("WORD_EXHAUSTION_POLICY", "reuse")
