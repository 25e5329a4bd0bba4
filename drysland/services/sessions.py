"""Per-player game session context.

A GameSession owns at most one live grid (and its assembler) plus the event
bus the grid publishes on. Every surface (HTTP routes, Socket.IO handlers, the
CLI) reaches a session through the SessionRegistry stored on the Flask app,
never through module globals.

Level flow:
    start()       restore the saved level, or generate level 1
    click()       advance along the path; reaching the goal auto-saves
    next_level()  only after completion; generates and saves level + 1
    apply_debug() validate a candidate parameter set, then swap the grid
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional

from drysland.events import EventBus, GridGenerated, LevelCompleted, LevelSaved, PointerHover
from drysland.grid.assembler import GridAssembler
from drysland.grid.codec import LevelState, reconstruct, serialize
from drysland.grid.config import MAX_RADIUS, GridParams, LevelConfig
from drysland.grid.errors import SerializationMismatch
from drysland.grid.lattice import Coord
from drysland.grid.pipeline import Grid
from drysland.logging_utils import get_logger

from .store import LevelStore, MemoryLevelStore

log = get_logger("session")


class SessionStateError(Exception):
    """Operation not allowed in the session's current state (e.g. next before completion)."""


class GameSession:
    def __init__(
        self,
        player_id: str,
        store: Optional[LevelStore] = None,
        level_config: Optional[LevelConfig] = None,
        bus: Optional[EventBus] = None,
        max_radius: int = MAX_RADIUS,
        enable_metrics: Optional[bool] = None,
    ):
        self.player_id = player_id
        self.store = store if store is not None else MemoryLevelStore()
        self.level_config = level_config or LevelConfig()
        self.bus = bus or EventBus()
        self.max_radius = min(max_radius, MAX_RADIUS)
        self.enable_metrics = enable_metrics
        self.log = log.bind(player=player_id)
        self.level: Optional[int] = None
        self.grid: Optional[Grid] = None
        self.assembler: Optional[GridAssembler] = None
        self.restored = False
        self.debug_params: Optional[GridParams] = None
        self._unsubscribers: List[Callable[[], None]] = [self.bus.subscribe(LevelCompleted, self._on_level_complete)]

    # -- lifecycle -------------------------------------------------------

    @property
    def started(self) -> bool:
        return self.assembler is not None

    @property
    def completed(self) -> bool:
        return bool(self.assembler and self.assembler.completed)

    def _install(self, grid: Grid, level: Optional[int], restored: bool = False):
        self._release()
        self.grid = grid
        self.level = level
        self.restored = restored
        self.assembler = GridAssembler(grid, bus=self.bus, level=level)
        self.bus.publish(GridGenerated(level=level, cells=len(grid.cells), restored=restored))

    def _release(self):
        if self.assembler is not None:
            self.assembler.dispose()
        self.assembler = None
        self.grid = None

    def _generate(self, level: int) -> Grid:
        params = self.level_config.generate_level(level - 1).validate(self.max_radius)
        grid = Grid(params=params, enable_metrics=self.enable_metrics)
        self._install(grid, level)
        return grid

    def start(self) -> Dict[str, Any]:
        """Resume the saved level when it decodes cleanly, otherwise generate level 1."""
        raw = self.store.load()
        if raw is not None:
            try:
                state = LevelState.from_dict(raw)
                grid = reconstruct(state)
            except SerializationMismatch as exc:
                self.log.warn(event="restore_rejected", error=str(exc))
            else:
                self._install(grid, state.level, restored=True)
                self.log.info(event="level_restored", level=state.level, cells=len(grid.cells))
                return self.state()
        self._generate(1)
        return self.state()

    def ensure_started(self) -> Dict[str, Any]:
        if not self.started:
            return self.start()
        return self.state()

    def next_level(self) -> Dict[str, Any]:
        if not self.completed:
            raise SessionStateError("level not completed")
        self._generate((self.level or 0) + 1)
        self.save()
        return self.state()

    def select_level(self, level: int) -> Dict[str, Any]:
        """Jump straight to ``level`` (tuning panel)."""
        if not isinstance(level, int) or isinstance(level, bool) or level < 1:
            raise SessionStateError("level must be a positive integer")
        self._generate(level)
        return self.state()

    def restart(self) -> Dict[str, Any]:
        """Regenerate the current level from scratch with a fresh seed."""
        if self.level is None and self.debug_params is not None:
            self._install(Grid(params=self.debug_params.validate(self.max_radius), enable_metrics=self.enable_metrics), None)
        else:
            self._generate(self.level or 1)
        return self.state()

    def apply_debug(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        """Validate ``candidate`` over the current parameters, then swap in a new grid.

        ConfigurationError propagates before the live grid is touched.
        """
        base = self.debug_params or (self.grid.params if self.grid is not None else GridParams())
        params = GridParams.from_dict(candidate, base=base).validate(self.max_radius)
        grid = Grid(params=params, enable_metrics=self.enable_metrics)
        self.debug_params = params
        # debug grids carry no level and are never saved
        self._install(grid, None)
        self.log.info(event="debug_grid_applied", **params.to_dict())
        return self.state()

    def save(self) -> Optional[LevelState]:
        if self.grid is None or not self.level:
            return None
        state = serialize(self.grid, self.level)
        self.store.save(state)
        self.bus.publish(LevelSaved(level=state.level, timestamp=state.timestamp))
        self.log.debug(event="level_saved", level=state.level, blocks=len(state.blocks))
        return state

    def _on_level_complete(self, event: LevelCompleted):
        self.save()

    def dispose(self):
        self._release()
        for off in self._unsubscribers:
            off()
        self._unsubscribers.clear()

    # -- interaction -----------------------------------------------------

    def _require(self) -> GridAssembler:
        if self.assembler is None:
            raise SessionStateError("no active grid")
        return self.assembler

    def click(self, coord: Coord) -> bool:
        return self._require().on_click(tuple(coord))

    def hover(self, coords: Iterable[Coord]) -> List[Coord]:
        assembler = self._require()
        self.bus.publish(PointerHover(intersected=tuple(tuple(c) for c in coords)))
        return sorted(c for c, b in assembler.blocks.items() if b.hovered)

    def set_shadows(self, enabled: bool):
        self._require().set_shadows(enabled)

    def state(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "level": self.level,
            "restored": self.restored,
            "completed": self.completed,
            "grid": self.grid.to_dict() if self.grid is not None else None,
            "board": self.assembler.to_dict() if self.assembler is not None else None,
        }


class SessionRegistry:
    """Thread-safe map of player id to GameSession.

    ``factory`` builds a session for a new player id; the default wires a SQL
    store and the DB-backed level curve (needs an app context).

    Sessions are evicted (and disposed) when idle for longer than ``idle_ttl``
    seconds or, least recently used first, when more than ``max_sessions``
    are live. Either bound may be None to disable it. Callables in
    ``on_remove`` receive the player id of every removed or evicted session.
    """

    def __init__(
        self,
        app=None,
        factory: Optional[Callable[[str], GameSession]] = None,
        idle_ttl: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app = app
        self._factory = factory or self._default_factory
        if app is not None:
            idle_ttl = idle_ttl if idle_ttl is not None else app.config.get("DRYSLAND_SESSION_TTL")
            max_sessions = max_sessions if max_sessions is not None else app.config.get("DRYSLAND_MAX_SESSIONS")
        self.idle_ttl = idle_ttl or None
        self.max_sessions = max_sessions or None
        self._clock = clock
        # player id -> (session, last use); oldest use first
        self._sessions: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = threading.Lock()
        self.on_remove: List[Callable[[str], None]] = []

    def _default_factory(self, player_id: str) -> GameSession:
        from drysland.services.level_service import load_level_config
        from drysland.services.store import SqlLevelStore

        cfg = self.app.config if self.app else {}
        return GameSession(
            player_id,
            store=SqlLevelStore(player_id),
            level_config=load_level_config(),
            max_radius=cfg.get("DRYSLAND_MAX_RADIUS", MAX_RADIUS),
            enable_metrics=cfg.get("DRYSLAND_ENABLE_GENERATION_METRICS"),
        )

    def _touch(self, player_id: str, session: GameSession, now: float):
        self._sessions[player_id] = (session, now)
        self._sessions.move_to_end(player_id)

    def _collect_evictions(self, now: float, keep: Optional[str] = None) -> List[tuple]:
        """Pop expired and over-capacity entries; caller holds the lock."""
        evicted = []
        if self.idle_ttl is not None:
            for pid, (session, last) in list(self._sessions.items()):
                if pid != keep and now - last > self.idle_ttl:
                    evicted.append((pid, session))
                    del self._sessions[pid]
        if self.max_sessions is not None:
            while len(self._sessions) > self.max_sessions:
                pid = next(iter(self._sessions))
                if pid == keep:
                    break
                evicted.append((pid, self._sessions.pop(pid)[0]))
        return evicted

    def _dispose(self, evicted: List[tuple], reason: str):
        for pid, session in evicted:
            session.dispose()
            for hook in self.on_remove:
                hook(pid)
            log.debug(event="session_removed", player=pid, reason=reason)

    def get(self, player_id: str) -> Optional[GameSession]:
        with self._lock:
            now = self._clock()
            evicted = self._collect_evictions(now)
            entry = self._sessions.get(player_id)
            if entry is not None:
                self._touch(player_id, entry[0], now)
        self._dispose(evicted, "evicted")
        return entry[0] if entry is not None else None

    def get_or_create(self, player_id: str) -> GameSession:
        with self._lock:
            now = self._clock()
            entry = self._sessions.get(player_id)
            if entry is None:
                session = self._factory(player_id)
                log.debug(event="session_created", player=player_id, sessions=len(self._sessions) + 1)
            else:
                session = entry[0]
            self._touch(player_id, session, now)
            evicted = self._collect_evictions(now, keep=player_id)
        self._dispose(evicted, "evicted")
        return session

    def evict_idle(self) -> int:
        """Drop sessions past the idle TTL or capacity; return how many went."""
        with self._lock:
            evicted = self._collect_evictions(self._clock())
        self._dispose(evicted, "evicted")
        return len(evicted)

    def remove(self, player_id: str) -> bool:
        with self._lock:
            entry = self._sessions.pop(player_id, None)
        if entry is None:
            return False
        self._dispose([(player_id, entry[0])], "removed")
        return True

    def __contains__(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._sessions

    def __len__(self):
        with self._lock:
            return len(self._sessions)


__all__ = ["GameSession", "SessionRegistry", "SessionStateError"]
