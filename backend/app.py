import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("motdepasse")


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) == "1"


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _wants_eventlet() -> bool:
    # Same platform rule as create_app: eventlet unless Windows, Python 3.13+
    # or an explicit non-eventlet SOCKETIO_ASYNC_MODE.
    mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if mode not in ("", "eventlet"):
        return False
    return not sys.platform.startswith("win") and sys.version_info < (3, 13)


def main() -> None:
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    _configure_logging()

    if _wants_eventlet():
        import eventlet

        # Must run before Flask-SocketIO and the game locks are imported.
        eventlet.monkey_patch()

    try:
        from backend.motdepasse.server import create_app
    except ImportError:  # pragma: no cover
        from motdepasse.server import create_app

    app, socketio = create_app()

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3001"))
    logger.info("Mot de Passe server listening on %s:%s", host, port)
    socketio.run(
        app,
        host=host,
        port=port,
        debug=_env_flag("FLASK_DEBUG", "1"),
        allow_unsafe_werkzeug=_env_flag("ALLOW_UNSAFE_WERKZEUG", "1"),
        use_reloader=_env_flag("FLASK_USE_RELOADER", "0"),
    )


if __name__ == "__main__":
    main()
