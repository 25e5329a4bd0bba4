"""HTTP blueprints and the helpers they share."""

import uuid

from flask import current_app, jsonify, session


def current_player_id() -> str:
    """Anonymous player id, created on first use and kept in the Flask session."""
    pid = session.get("player_id")
    if not pid:
        pid = uuid.uuid4().hex
        session["player_id"] = pid
    return pid


def registry():
    return current_app.extensions["drysland_sessions"]


def current_game():
    return registry().get_or_create(current_player_id())


def validation_error(result, status=400):
    return jsonify(result), status
