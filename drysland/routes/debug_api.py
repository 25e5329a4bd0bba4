"""Tuning panel endpoints (registered only when DRYSLAND_DEBUG_PANEL is set).

GET returns the current parameter set, the allowed ranges and the known
strategy tags. POST submits a candidate parameter set (camelCase keys from the
panel are accepted) or ``{"level": n}`` to jump to a level. The candidate is
validated in full before the live grid is replaced.
"""
from flask import Blueprint, jsonify, request

from drysland.grid.config import MAX_RADIUS, MIN_COVERAGE, MIN_DEAD_ENDS, GridParams
from drysland.grid.errors import ConfigurationError
from drysland.grid.strategies import STRATEGIES
from drysland.routes import current_game, validation_error
from drysland.services.sessions import SessionStateError
from drysland.websockets.validation import DEBUG_LEVEL, validate

bp_debug = Blueprint("debug_api", __name__)

RANGES = {
    "radius": [1, MAX_RADIUS],
    "coverage": [MIN_COVERAGE, 1],
    "extra_links": [0, 1],
    "min_dead_ends": [MIN_DEAD_ENDS, None],
}


@bp_debug.route("/api/debug/grid", methods=["GET"])
def debug_get():
    game = current_game()
    params = game.debug_params or (game.grid.params if game.grid is not None else GridParams())
    return jsonify(
        {
            "params": params.to_dict(),
            "ranges": RANGES,
            "strategies": sorted(STRATEGIES),
            "level": game.level,
        }
    )


@bp_debug.route("/api/debug/grid", methods=["POST"])
def debug_apply():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return validation_error({"field": "__root__", "error": "payload must be an object", "code": "type"})
    game = current_game()
    if "level" in data:
        ok, result = validate(data, DEBUG_LEVEL)
        if not ok:
            return validation_error(result)
        try:
            return jsonify(game.select_level(result["level"]))
        except SessionStateError as exc:
            return jsonify({"error": str(exc), "field": "level"}), 400
    try:
        return jsonify(game.apply_debug(data))
    except ConfigurationError as exc:
        return jsonify(exc.to_dict()), 400
