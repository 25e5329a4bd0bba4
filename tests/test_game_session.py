import pytest

from drysland.events import GridDisposed, GridGenerated, LevelSaved
from drysland.grid import ConfigurationError, GridParams, LevelConfig, generate_grid, serialize
from drysland.grid.lattice import ORIGIN
from drysland.services.sessions import GameSession, SessionRegistry, SessionStateError
from drysland.services.store import MemoryLevelStore

from grid_test_utils import edge_set, walk_to_goal


@pytest.fixture()
def store():
    return MemoryLevelStore()


@pytest.fixture()
def game(store):
    return GameSession("p1", store=store, level_config=LevelConfig())


def _finish(game):
    return walk_to_goal(game.click, game.grid)


def test_start_without_save_generates_level_one(game):
    state = game.start()
    assert state["level"] == 1
    assert state["restored"] is False
    assert state["board"]["active"] == [0, 0]
    assert game.grid.params.radius == LevelConfig().generate_level(0).radius


def test_start_restores_saved_level(store):
    saved = generate_grid(GridParams(radius=3, coverage=0.6, seed=5))
    store.save(serialize(saved, level=6))
    game = GameSession("p2", store=store)
    state = game.start()
    assert state["level"] == 6
    assert state["restored"] is True
    assert edge_set(game.grid) == edge_set(saved)


def test_corrupt_save_falls_back_to_fresh_generation(capsys):
    store = MemoryLevelStore({"level": 3, "timestamp": 1, "blocks": [{"coordinate": [1, 0], "connections": 0, "open": True}]})
    game = GameSession("p3", store=store)
    state = game.start()
    assert state["level"] == 1
    assert state["restored"] is False
    assert "event=restore_rejected" in capsys.readouterr().out


def test_next_level_requires_completion(game):
    game.start()
    with pytest.raises(SessionStateError):
        game.next_level()


def test_completing_level_autosaves_and_unlocks_next(game, store):
    game.start()
    assert all(_finish(game))
    assert game.completed
    assert store.saves == 1
    assert store.data["level"] == 1
    state = game.next_level()
    assert state["level"] == 2
    assert state["completed"] is False
    assert store.data["level"] == 2


def test_new_grid_disposes_previous(game):
    events = []
    game.bus.subscribe(GridDisposed, events.append)
    game.bus.subscribe(GridGenerated, events.append)
    game.start()
    first = game.assembler
    game.restart()
    assert first.disposed
    assert [type(e).__name__ for e in events] == ["GridGenerated", "GridDisposed", "GridGenerated"]


def test_apply_debug_validates_before_touching_grid(game):
    game.start()
    live = game.grid
    with pytest.raises(ConfigurationError) as exc:
        game.apply_debug({"radius": 12})
    assert exc.value.field == "radius"
    assert game.grid is live
    state = game.apply_debug({"radius": 4, "coverage": 0.9, "strategy": 3, "extraLinks": 0.2, "minDeadEnds": 4, "seed": 8})
    assert state["level"] is None
    assert game.grid.params.strategy == "prim"
    assert game.grid.params.radius == 4
    assert game.save() is None


def test_debug_links_only_grid_has_no_blocks(game):
    game.start()
    state = game.apply_debug({"linksOnly": True, "radius": 2})
    assert state["board"]["blocks"] == []
    assert state["grid"]["cells"] > 0


def test_select_level_jumps(game):
    game.start()
    state = game.select_level(7)
    assert state["level"] == 7
    assert game.grid.params.radius == LevelConfig().generate_level(6).radius
    with pytest.raises(SessionStateError):
        game.select_level(0)


def test_hover_and_shadows(game):
    game.start()
    target = game.grid.linked(ORIGIN)[0]
    assert game.hover([target]) == [target]
    game.set_shadows(False)
    assert not any(b["cast_shadow"] for b in game.state()["board"]["blocks"])


def test_manual_save_publishes_event(game, store):
    saved = []
    game.bus.subscribe(LevelSaved, saved.append)
    game.start()
    state = game.save()
    assert saved[0].level == 1 and saved[0].timestamp == state.timestamp
    assert store.data["blocks"] == state.blocks


def test_interaction_without_grid_raises(game):
    with pytest.raises(SessionStateError):
        game.click((1, 0))


def test_dispose_releases_grid(game):
    game.start()
    board = game.assembler
    game.dispose()
    assert board.disposed
    assert game.state()["board"] is None
    assert game.bus.subscriber_count() == 0


def test_registry_reuses_and_removes_sessions():
    reg = SessionRegistry(factory=lambda pid: GameSession(pid))
    a = reg.get_or_create("x")
    assert reg.get_or_create("x") is a
    assert len(reg) == 1
    a.start()
    assert reg.remove("x") is True
    assert a.assembler is None
    assert reg.remove("x") is False
    assert reg.get("x") is None


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_registry_evicts_idle_sessions():
    clock = _Clock()
    removed = []
    reg = SessionRegistry(factory=lambda pid: GameSession(pid), idle_ttl=60, clock=clock)
    reg.on_remove.append(removed.append)
    old = reg.get_or_create("old")
    old.start()
    clock.now = 50
    reg.get_or_create("fresh")
    clock.now = 100
    # "fresh" was used 50s ago, "old" 100s ago
    assert reg.evict_idle() == 1
    assert "old" not in reg and "fresh" in reg
    assert old.assembler is None
    assert removed == ["old"]


def test_registry_touch_keeps_session_alive():
    clock = _Clock()
    reg = SessionRegistry(factory=lambda pid: GameSession(pid), idle_ttl=60, clock=clock)
    a = reg.get_or_create("a")
    for t in (40, 80, 120):
        clock.now = t
        assert reg.get("a") is a
    assert len(reg) == 1


def test_registry_lru_bound_disposes_oldest():
    reg = SessionRegistry(factory=lambda pid: GameSession(pid), max_sessions=2)
    first = reg.get_or_create("p1")
    first.start()
    reg.get_or_create("p2")
    reg.get("p1")
    reg.get_or_create("p3")
    assert len(reg) == 2
    assert "p2" not in reg
    assert "p1" in reg and "p3" in reg
    assert first.assembler is not None


def test_registry_remove_runs_hooks():
    reg = SessionRegistry(factory=lambda pid: GameSession(pid))
    removed = []
    reg.on_remove.append(removed.append)
    reg.get_or_create("gone")
    reg.remove("gone")
    assert removed == ["gone"]


def test_session_metrics_flag_reaches_grid(monkeypatch):
    monkeypatch.setenv("DRYSLAND_ENABLE_GENERATION_METRICS", "1")
    game = GameSession("quiet", enable_metrics=False)
    game.start()
    assert game.grid.metrics == {}
    game.apply_debug({"radius": 2})
    assert game.grid.metrics == {}


def test_app_registry_reads_session_config(test_app):
    reg = test_app.extensions["drysland_sessions"]
    assert reg.idle_ttl == test_app.config["DRYSLAND_SESSION_TTL"]
    assert reg.max_sessions == test_app.config["DRYSLAND_MAX_SESSIONS"]
