import logging

try:
    from backend.motdepasse.config import Config
    from backend.motdepasse.server import create_app
except ImportError:  # pragma: no cover
    from motdepasse.config import Config
    from motdepasse.server import create_app

logging.basicConfig(level=Config.LOG_LEVEL.upper())

app, socketio = create_app()
