"""
project: Drysland
module: server.py
License: MIT

Server bootstrap helpers.

Exposes helpers to start the Socket.IO server, configure file/console logging
and seed default GameConfig rows.
"""

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from drysland import create_app, db, socketio
from drysland.services.level_service import DEFAULT_GRID_LEVELS, GRID_LEVELS_KEY

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def start_server(host="0.0.0.0", port=5000, debug: bool = False, app=None):  # pragma: no cover (runtime only)
    """Start the Socket.IO server; tables and config rows are ensured by create_app.

    When debug=True, Flask's debugger and reloader provide verbose tracebacks.
    Also configures application logging to a rotating file and console.
    """
    app = app or create_app()
    _configure_logging(app)
    try:
        print(f"[INFO] Starting Socket.IO server on {host}:{port} (async_mode={socketio.async_mode})")
        # Let Flask-SocketIO choose appropriate server (eventlet/gevent/werkzeug)
        socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


def _configure_logging(app):
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        pass
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(LOG_FORMAT))

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path


def _seed_game_config():
    """Insert default configuration rows if they do not exist yet. Safe to call multiple times."""
    from drysland.models import GameConfig

    existing = {row.key for row in GameConfig.query.all()}
    defaults = {
        GRID_LEVELS_KEY: DEFAULT_GRID_LEVELS,
    }
    created = 0
    for k, v in defaults.items():
        if k not in existing:
            db.session.add(GameConfig(key=k, value=json.dumps(v)))
            created += 1
    if created:
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
    return created
