import json

import pytest

from drysland.grid import GridAssembler, GridParams, LevelState, SerializationMismatch, generate_grid, reconstruct, serialize
from drysland.grid.cells import LOOP_EDGE
from drysland.grid.lattice import ORIGIN

from grid_test_utils import edge_set, tree_is_spanning


def _open_flags(grid):
    return {c: cell.open for c, cell in grid.cells.items()}


@pytest.mark.parametrize("strategy", ["dfs", "bfs", "prim"])
@pytest.mark.parametrize("seed", [1, 17, 333])
def test_round_trip_preserves_cells_edges_and_open_flags(strategy, seed):
    g = generate_grid(GridParams(radius=4, coverage=0.6, strategy=strategy, extra_links=0.35, min_dead_ends=3, seed=seed))
    board = GridAssembler(g)
    board.on_click(g.linked(ORIGIN)[0])
    state = serialize(g, level=5, timestamp=1700000000000)
    back = reconstruct(json.loads(json.dumps(state.to_dict())))
    assert set(back.cells) == set(g.cells)
    assert edge_set(back) == edge_set(g)
    assert _open_flags(back) == _open_flags(g)
    assert len(back.loop_edges) == len(g.loop_edges)
    assert tree_is_spanning(back)
    assert back.goal == g.goal


def test_serialize_shape():
    g = generate_grid(GridParams(radius=1, coverage=1.0, strategy="bfs", seed=1))
    state = serialize(g, level=1)
    assert isinstance(state.timestamp, int) and state.timestamp > 0
    origin = next(b for b in state.blocks if b["coordinate"] == [0, 0])
    assert origin == {"coordinate": [0, 0], "connections": 0b111111, "open": True}
    assert LevelState.from_dict(state.to_dict()) == state


def test_reconstruct_turns_cycle_edges_into_loops():
    # triangle origin-(1,0)-(1,-1): three mutually adjacent cells
    state = {
        "level": 1,
        "timestamp": 0,
        "blocks": [
            {"coordinate": [0, 0], "connections": 0b000011, "open": True},
            {"coordinate": [1, 0], "connections": 0b001000 | 0b000100, "open": False},
            {"coordinate": [1, -1], "connections": 0b010000 | 0b100000, "open": False},
        ],
    }
    g = reconstruct(state)
    assert len(g.tree_edges) == 2
    assert [(e.a, e.b) for e in g.loop_edges] == [((1, -1), (1, 0))]
    assert all(e.kind == LOOP_EDGE for e in g.loop_edges)


def test_single_origin_block_is_valid():
    g = reconstruct({"level": 1, "timestamp": 5, "blocks": [{"coordinate": [0, 0], "connections": 0, "open": True}]})
    assert list(g.cells) == [ORIGIN]
    assert g.goal == ORIGIN


def _state(blocks, **kw):
    d = {"level": 2, "timestamp": 1, "blocks": blocks}
    d.update(kw)
    return d


@pytest.mark.parametrize(
    "payload",
    [
        # coordinate beyond the radius cap
        _state([{"coordinate": [0, 0], "connections": 0, "open": True}, {"coordinate": [11, 0], "connections": 0, "open": False}]),
        # duplicate coordinate
        _state([{"coordinate": [0, 0], "connections": 0, "open": True}, {"coordinate": [0, 0], "connections": 0, "open": True}]),
        # origin missing
        _state([{"coordinate": [1, 0], "connections": 0, "open": True}]),
        # start block stored closed
        _state([{"coordinate": [0, 0], "connections": 0, "open": False}]),
        _state([{"coordinate": [0, 0], "connections": 0}]),
        # mask wider than six bits
        _state([{"coordinate": [0, 0], "connections": 64, "open": True}]),
        # neighbor disagrees
        _state([{"coordinate": [0, 0], "connections": 1, "open": True}, {"coordinate": [1, 0], "connections": 0, "open": False}]),
        # edge to a block that is not stored
        _state([{"coordinate": [0, 0], "connections": 1, "open": True}]),
        # island not reachable from origin
        _state(
            [
                {"coordinate": [0, 0], "connections": 0, "open": True},
                {"coordinate": [2, 0], "connections": 1, "open": False},
                {"coordinate": [3, 0], "connections": 8, "open": False},
            ]
        ),
        # malformed payloads
        _state("nope"),
        _state([{"coordinate": [0], "connections": 0}]),
        _state([{"coordinate": [0, 0], "connections": True}]),
        _state([{"coordinate": [0, 0], "connections": 0, "open": "yes"}]),
        _state([], level=0),
        _state([], timestamp="now"),
        ["not", "a", "dict"],
    ],
)
def test_mismatched_states_rejected(payload):
    with pytest.raises(SerializationMismatch):
        reconstruct(payload)


def test_mismatch_carries_coordinate():
    with pytest.raises(SerializationMismatch) as exc:
        reconstruct(_state([{"coordinate": [0, 0], "connections": 1, "open": True}, {"coordinate": [1, 0], "connections": 0, "open": False}]))
    assert exc.value.coordinate == (0, 0)
