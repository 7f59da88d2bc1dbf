import os
from pathlib import Path


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Empty means "pick per platform" (see server.create_app)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Word pairs: JSON object of primary word -> opposite word
    WORDS_FILE = os.environ.get(
        "WORDS_FILE", str(Path(__file__).resolve().parent / "data" / "words.json")
    )

    # Game
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "30"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "3"))
    MAX_PLAYERS_PER_ROOM = int(os.environ.get("MAX_PLAYERS_PER_ROOM", "12"))
    DEFAULT_MAX_ROUNDS = int(os.environ.get("DEFAULT_MAX_ROUNDS", "3"))
    DEFAULT_MIN_PLAYERS_FOR_IMPOSTER_WIN = int(
        os.environ.get("DEFAULT_MIN_PLAYERS_FOR_IMPOSTER_WIN", "1")
    )
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "6"))

    # Text limits
    NICKNAME_MAX_CHARS = int(os.environ.get("NICKNAME_MAX_CHARS", "16"))
    DESCRIPTION_MAX_CHARS = int(os.environ.get("DESCRIPTION_MAX_CHARS", "50"))
    CHAT_MAX_CHARS = int(os.environ.get("CHAT_MAX_CHARS", "200"))
    CHAT_HISTORY_LIMIT = int(os.environ.get("CHAT_HISTORY_LIMIT", "50"))
