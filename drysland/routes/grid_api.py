"""
project: Drysland
module: grid_api.py
License: MIT

Grid session API routes.

Every route acts on the GameSession of the player id held in the Flask
session. Routes other than start/state return 409 when no grid is live.

Endpoints:
  GET    /api/grid/state     -> session state (starts a session lazily)
  POST   /api/grid/start     -> restore saved level or generate level 1
  POST   /api/grid/next      -> next level, only after completion
  POST   /api/grid/click     {"coordinate": [q, r]}
  POST   /api/grid/hover     {"coordinates": [[q, r], ...]}
  POST   /api/grid/shadows   {"enabled": bool}
  POST   /api/grid/save      -> persist current level
  DELETE /api/grid           -> dispose the live grid and drop the session
"""
from flask import Blueprint, jsonify, request

from drysland.logging_utils import get_logger
from drysland.routes import current_game, current_player_id, registry, validation_error
from drysland.services.sessions import SessionStateError
from drysland.websockets.validation import GRID_CLICK, GRID_HOVER, GRID_SHADOWS, validate

bp_grid = Blueprint("grid_api", __name__)
log = get_logger("grid_api")


def _conflict(exc):
    return jsonify({"error": str(exc)}), 409


@bp_grid.route("/api/grid/state", methods=["GET"])
def grid_state():
    return jsonify(current_game().ensure_started())


@bp_grid.route("/api/grid/start", methods=["POST"])
def grid_start():
    return jsonify(current_game().start())


@bp_grid.route("/api/grid/next", methods=["POST"])
def grid_next():
    try:
        return jsonify(current_game().next_level())
    except SessionStateError as exc:
        return _conflict(exc)


@bp_grid.route("/api/grid/click", methods=["POST"])
def grid_click():
    ok, result = validate(request.get_json(silent=True), GRID_CLICK)
    if not ok:
        return validation_error(result)
    game = current_game()
    try:
        accepted = game.click(result["coordinate"])
    except SessionStateError as exc:
        return _conflict(exc)
    log.debug(event="grid_click", player=game.player_id, coordinate=result["coordinate"], accepted=accepted)
    return jsonify(
        {
            "accepted": accepted,
            "active": list(game.assembler.active) if game.assembler.active else None,
            "completed": game.completed,
            "level": game.level,
        }
    )


@bp_grid.route("/api/grid/hover", methods=["POST"])
def grid_hover():
    ok, result = validate(request.get_json(silent=True), GRID_HOVER)
    if not ok:
        return validation_error(result)
    try:
        hovered = current_game().hover(result["coordinates"])
    except SessionStateError as exc:
        return _conflict(exc)
    return jsonify({"hovered": [list(c) for c in hovered]})


@bp_grid.route("/api/grid/shadows", methods=["POST"])
def grid_shadows():
    ok, result = validate(request.get_json(silent=True), GRID_SHADOWS)
    if not ok:
        return validation_error(result)
    try:
        current_game().set_shadows(result["enabled"])
    except SessionStateError as exc:
        return _conflict(exc)
    return jsonify({"shadows": result["enabled"]})


@bp_grid.route("/api/grid/save", methods=["POST"])
def grid_save():
    state = current_game().save()
    if state is None:
        return jsonify({"saved": False})
    return jsonify({"saved": True, "level": state.level, "timestamp": state.timestamp})


@bp_grid.route("/api/grid", methods=["DELETE"])
def grid_dispose():
    removed = registry().remove(current_player_id())
    return jsonify({"disposed": removed})
