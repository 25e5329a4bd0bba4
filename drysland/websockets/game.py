"""Socket.IO grid handlers.

Events:
    - grid_join: Attach this socket to a player's session; payload { player_id? }
    - grid_click: Advance along the path; payload { coordinate: [q, r] }
    - grid_hover: Pointer intersections; payload { coordinates: [[q, r], ...] }

Emits:
    - grid_state: Full session state (after join)
    - block_update: BlockActivated / HoverChanged events from the session bus
    - level_complete: LevelCompleted from the session bus
    - error: Invalid payloads ({ message, field, code }) and rejected moves

Each player gets a room named after its id; bus events are forwarded there,
so a click made over HTTP also reaches connected sockets.
"""

import uuid

from flask import request, session
from flask_socketio import emit, join_room

from drysland import socketio
from drysland.events import BlockActivated, HoverChanged, LevelCompleted
from drysland.logging_utils import log as _log
from drysland.services.sessions import SessionStateError

from .validation import GRID_CLICK, GRID_HOVER, GRID_JOIN, validate

# sid -> player id for connected sockets
socket_players = {}
# player id -> (bus, unsubscribe callables) for the bus forwarders
_forwarders = {}


def _registry():
    from flask import current_app

    return current_app.extensions["drysland_sessions"]


def _bind_forwarders(game):
    bound = _forwarders.get(game.player_id)
    if bound and bound[0] is game.bus:
        return
    unbind_forwarders(game.player_id)
    room = game.player_id

    def _forward(name):
        return lambda ev: socketio.emit(name, ev.to_dict(), to=room)

    _forwarders[room] = (game.bus, [
        game.bus.subscribe(BlockActivated, _forward("block_update")),
        game.bus.subscribe(HoverChanged, _forward("block_update")),
        game.bus.subscribe(LevelCompleted, _forward("level_complete")),
    ])


def unbind_forwarders(player_id):
    _, offs = _forwarders.pop(player_id, (None, []))
    for off in offs:
        off()


def _emit_invalid(event, result):
    emit("error", {"message": f"Invalid {event}: {result['error']}", "field": result["field"], "code": result["code"]})


def _current():
    player_id = socket_players.get(request.sid)
    if player_id is None:
        return None
    return _registry().get(player_id)


@socketio.on("grid_join")
def handle_grid_join(data=None):
    ok, result = validate(data or {}, GRID_JOIN)
    if not ok:
        _emit_invalid("grid_join", result)
        return
    player_id = result.get("player_id") or session.get("player_id") or uuid.uuid4().hex
    socket_players[request.sid] = player_id
    join_room(player_id)
    game = _registry().get_or_create(player_id)
    _bind_forwarders(game)
    emit("grid_state", game.ensure_started())
    _log.info(event="grid_join", player=player_id, sid=request.sid)


@socketio.on("grid_click")
def handle_grid_click(data=None):
    ok, result = validate(data or {}, GRID_CLICK)
    if not ok:
        _emit_invalid("grid_click", result)
        return
    game = _current()
    if game is None:
        emit("error", {"message": "join a grid first", "field": "__root__", "code": "not_joined"})
        return
    try:
        accepted = game.click(result["coordinate"])
    except SessionStateError as exc:
        emit("error", {"message": str(exc), "field": "__root__", "code": "no_grid"})
        return
    if not accepted:
        emit("error", {"message": "move rejected", "field": "coordinate", "code": "invalid_move"})


@socketio.on("grid_hover")
def handle_grid_hover(data=None):
    ok, result = validate(data or {}, GRID_HOVER)
    if not ok:
        _emit_invalid("grid_hover", result)
        return
    game = _current()
    if game is None:
        emit("error", {"message": "join a grid first", "field": "__root__", "code": "not_joined"})
        return
    try:
        game.hover(result["coordinates"])
    except SessionStateError as exc:
        emit("error", {"message": str(exc), "field": "__root__", "code": "no_grid"})


@socketio.on("disconnect")
def handle_disconnect(*args):
    player_id = socket_players.pop(request.sid, None)
    if player_id is not None and player_id not in socket_players.values():
        unbind_forwarders(player_id)
