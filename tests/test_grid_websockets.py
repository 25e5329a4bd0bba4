import uuid

from drysland.grid.lattice import ORIGIN

from grid_test_utils import path_to


def _extract(event_name, received):
    return [p["args"][0] for p in received if p["name"] == event_name]


def _join(socket_client, test_app):
    pid = "sock-" + uuid.uuid4().hex[:8]
    socket_client.emit("grid_join", {"player_id": pid})
    received = socket_client.get_received()
    game = test_app.extensions["drysland_sessions"].get(pid)
    return game, received


def test_join_emits_state(socket_client, test_app):
    game, received = _join(socket_client, test_app)
    states = _extract("grid_state", received)
    assert states and states[0]["level"] == 1
    assert states[0]["player_id"] == game.player_id


def test_invalid_payloads_emit_error(socket_client, test_app):
    socket_client.emit("grid_join", {"player_id": 5})
    errs = _extract("error", socket_client.get_received())
    assert errs[0]["field"] == "player_id" and errs[0]["code"] == "type"
    socket_client.emit("grid_click", {"coordinate": "0,0"})
    errs = _extract("error", socket_client.get_received())
    assert errs[0]["field"] == "coordinate"


def test_click_before_join_is_rejected(socket_client):
    socket_client.emit("grid_click", {"coordinate": [1, 0]})
    errs = _extract("error", socket_client.get_received())
    assert errs[0]["code"] == "not_joined"


def test_click_forwards_block_update_and_rejections(socket_client, test_app):
    game, _ = _join(socket_client, test_app)
    step = game.grid.linked(ORIGIN)[0]
    socket_client.emit("grid_click", {"coordinate": list(step)})
    updates = _extract("block_update", socket_client.get_received())
    assert updates[0]["type"] == "BlockActivated"
    assert list(updates[0]["coordinate"]) == list(step)
    socket_client.emit("grid_click", {"coordinate": [8, 8]})
    errs = _extract("error", socket_client.get_received())
    assert errs[0]["code"] == "invalid_move"


def test_reaching_goal_emits_level_complete(socket_client, test_app):
    game, _ = _join(socket_client, test_app)
    for coord in path_to(game.grid, game.grid.goal):
        socket_client.emit("grid_click", {"coordinate": list(coord)})
    done = _extract("level_complete", socket_client.get_received())
    assert len(done) == 1
    assert done[0]["level"] == 1
    assert list(done[0]["coordinate"]) == list(game.grid.goal)


def test_hover_forwards_changes(socket_client, test_app):
    game, _ = _join(socket_client, test_app)
    target = game.grid.linked(ORIGIN)[0]
    socket_client.emit("grid_hover", {"coordinates": [list(target)]})
    updates = _extract("block_update", socket_client.get_received())
    assert updates[0]["type"] == "HoverChanged"
    assert [list(c) for c in updates[0]["hovered"]] == [list(target)]
