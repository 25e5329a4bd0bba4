"""
project: Drysland
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

This module wires together the Flask app, SQLAlchemy and Flask-SocketIO.
Configuration is sourced from environment variables with reasonable defaults
for development. A local `instance/` directory is used for SQLite and other
runtime data.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

__version__ = "0.4.0"

# Load .env if present so `SECRET_KEY`, `DATABASE_URL`, etc. can be supplied
# without exporting shell variables during development.
load_dotenv()

db = SQLAlchemy(session_options={"expire_on_commit": False})
socketio = SocketIO()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def create_app(config=None):
    """Build and return the Flask app.

    ``config`` entries override environment-derived settings (tests pass an
    in-memory SQLite URI here).
    """
    app = Flask(__name__, instance_relative_config=True)

    # Ensure instance directory exists for SQLite and other runtime files
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        db_path = Path(app.instance_path) / "drysland.db"
        # Use POSIX path for SQLAlchemy URI compatibility across OS
        database_url = f"sqlite:///{db_path.as_posix()}"

    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        SQLALCHEMY_DATABASE_URI=database_url,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        DRYSLAND_MAX_RADIUS=int(os.getenv("DRYSLAND_MAX_RADIUS", "10")),
        DRYSLAND_DEBUG_PANEL=_flag("DRYSLAND_DEBUG_PANEL"),
        DRYSLAND_ENABLE_GENERATION_METRICS=_flag("DRYSLAND_ENABLE_GENERATION_METRICS", "1"),
        DRYSLAND_SESSION_TTL=float(os.getenv("DRYSLAND_SESSION_TTL", "1800")),
        DRYSLAND_MAX_SESSIONS=int(os.getenv("DRYSLAND_MAX_SESSIONS", "1000")),
    )
    if config:
        app.config.update(config)

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if uri.startswith("sqlite:") and "SQLALCHEMY_ENGINE_OPTIONS" not in app.config:
        # allow usage across threads like socketio / test harness
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {"connect_args": {"timeout": 10, "check_same_thread": False}}

    db.init_app(app)
    # Let Flask-SocketIO select best async_mode based on installed deps (eventlet/gevent/threading)
    socketio.init_app(
        app,
        async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
        cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*"),
        ping_interval=20,
        ping_timeout=10,
    )

    from drysland.services.sessions import SessionRegistry

    sessions = SessionRegistry(app)
    app.extensions["drysland_sessions"] = sessions

    from drysland.routes.debug_api import bp_debug
    from drysland.routes.grid_api import bp_grid

    app.register_blueprint(bp_grid)
    if app.config["DRYSLAND_DEBUG_PANEL"]:
        app.register_blueprint(bp_debug)

    # Import websocket handlers so their event decorators register with Socket.IO (side-effect)
    from drysland.websockets import game as _ws_game

    # socket forwarders are unbound whenever a session is removed or evicted
    sessions.on_remove.append(_ws_game.unbind_forwarders)

    with app.app_context():
        from drysland.models import models as _models  # noqa: F401
        from drysland.server import _seed_game_config

        db.create_all()
        _seed_game_config()

    @app.errorhandler(500)
    def internal_error(e):
        error_id = uuid.uuid4().hex[:8]
        logging.exception("Unhandled exception (id=%s)", error_id)
        return jsonify({"error": "internal error", "id": error_id}), 500

    return app
