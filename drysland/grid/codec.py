"""Save/restore codec.

A LevelState keeps only what is needed to rebuild the path network: each
block's coordinate, its six-bit connection mask and its open flag. Restoring
never re-runs generation. Tree edges are re-derived by a breadth-first walk
from the origin in direction order; every other edge becomes a loop edge.

Stored payload shape (JSON):

    {"level": 3, "timestamp": 1718000000000,
     "blocks": [{"coordinate": [0, 0], "connections": 5, "open": true}, ...]}
"""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .cells import LOOP_EDGE, TREE, TREE_EDGE, Cell, CellMap, EdgeMap, edge_key, link
from .config import MAX_RADIUS, GridParams
from .errors import SerializationMismatch
from .lattice import ALL_DIRECTIONS_MASK, ORIGIN, Coord, hex_distance, lattice_size, neighbor, opposite
from .pipeline import Grid


@dataclass
class LevelState:
    level: int
    timestamp: int
    blocks: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "timestamp": self.timestamp, "blocks": [dict(b) for b in self.blocks]}

    @classmethod
    def from_dict(cls, data: Any) -> "LevelState":
        if not isinstance(data, dict):
            raise SerializationMismatch("level state must be an object")
        level = data.get("level")
        timestamp = data.get("timestamp")
        blocks = data.get("blocks")
        if not _is_int(level) or level < 1:
            raise SerializationMismatch("level must be a positive integer")
        if not _is_int(timestamp) or timestamp < 0:
            raise SerializationMismatch("timestamp must be a non-negative integer")
        if not isinstance(blocks, list):
            raise SerializationMismatch("blocks must be a list")
        return cls(level=level, timestamp=timestamp, blocks=list(blocks))


def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def now_ms() -> int:
    return int(time.time() * 1000)


def serialize(grid: Grid, level: int, timestamp: Optional[int] = None) -> LevelState:
    blocks = [
        {"coordinate": [q, r], "connections": grid.connection_mask((q, r)), "open": bool(grid.cells[(q, r)].open)}
        for q, r in sorted(grid.cells)
    ]
    return LevelState(level=level, timestamp=now_ms() if timestamp is None else timestamp, blocks=blocks)


def _parse_blocks(blocks: List[Any]) -> Dict[Coord, tuple]:
    parsed: Dict[Coord, tuple] = {}
    for entry in blocks:
        if not isinstance(entry, dict):
            raise SerializationMismatch("block entries must be objects")
        raw = entry.get("coordinate")
        if not isinstance(raw, (list, tuple)) or len(raw) != 2 or not all(_is_int(v) for v in raw):
            raise SerializationMismatch("coordinate must be a pair of integers")
        coord = (raw[0], raw[1])
        mask = entry.get("connections")
        if not _is_int(mask):
            raise SerializationMismatch("connections must be an integer", coord)
        is_open = entry.get("open", False)
        if not isinstance(is_open, bool):
            raise SerializationMismatch("open must be a boolean", coord)
        if hex_distance(coord) > MAX_RADIUS:
            raise SerializationMismatch("coordinate outside lattice bounds", coord)
        if coord in parsed:
            raise SerializationMismatch("duplicate coordinate", coord)
        if mask < 0 or mask > ALL_DIRECTIONS_MASK:
            raise SerializationMismatch("connection mask outside six bits", coord)
        parsed[coord] = (mask, is_open)
    return parsed


def reconstruct(state: Union[LevelState, Dict[str, Any]]) -> Grid:
    """Rebuild a Grid from a LevelState (or its dict form) without generating.

    Raises SerializationMismatch on any inconsistency; nothing partial is returned.
    """
    if not isinstance(state, LevelState):
        state = LevelState.from_dict(state)
    parsed = _parse_blocks(state.blocks)
    if ORIGIN not in parsed:
        raise SerializationMismatch("origin block missing")
    if not parsed[ORIGIN][1]:
        # the start block is always open in a saved level
        raise SerializationMismatch("origin block closed", ORIGIN)

    for coord, (mask, _) in parsed.items():
        for d in range(6):
            if not mask & (1 << d):
                continue
            nb = neighbor(coord, d)
            if nb not in parsed:
                raise SerializationMismatch("connection to a missing block", coord)
            if not parsed[nb][0] & (1 << opposite(d)):
                raise SerializationMismatch("non-reciprocal connection", coord)

    cells: CellMap = {c: Cell(c, TREE, open=o) for c, (_, o) in parsed.items()}
    edges: EdgeMap = {}
    seen = {ORIGIN}
    q = deque([ORIGIN])
    while q:
        cur = q.popleft()
        mask = parsed[cur][0]
        for d in range(6):
            nb = neighbor(cur, d)
            if mask & (1 << d) and nb not in seen:
                seen.add(nb)
                link(cells, edges, cur, nb, TREE_EDGE)
                q.append(nb)
    if len(seen) != len(parsed):
        stray = min(c for c in parsed if c not in seen)
        raise SerializationMismatch("block not connected to origin", stray)

    for coord in sorted(parsed):
        mask = parsed[coord][0]
        for d in range(6):
            nb = neighbor(coord, d)
            if mask & (1 << d) and edge_key(coord, nb) not in edges:
                link(cells, edges, coord, nb, LOOP_EDGE)

    radius = max(1, max(hex_distance(c) for c in cells))
    coverage = round(len(cells) / lattice_size(radius), 4)
    params = GridParams(radius=radius, coverage=coverage)
    grid = Grid(params=params, cells=cells, edges=edges)
    if grid.enable_metrics:
        grid.metrics.update(
            cells_visited=len(cells),
            tree_edges=len(grid.tree_edges),
            loop_edges=len(grid.loop_edges),
            dead_ends=len(grid.dead_ends),
        )
    return grid


__all__ = ["LevelState", "serialize", "reconstruct", "now_ms"]
