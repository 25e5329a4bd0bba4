"""Pipeline orchestration for grid generation.

Provides the public Grid class used by sessions, the codec and the server
layer. A Grid built from parameters runs every generation phase; a Grid built
from existing cells and edges (restore path) skips generation and only
re-derives start and goal.
"""
from __future__ import annotations

import os
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from drysland.logging_utils import get_logger

from .cells import GOAL, LOOP_EDGE, START, TREE, TREE_EDGE, CellMap, Edge, EdgeMap, dead_ends, edge_key
from .config import GridParams
from .constraints import ConstraintResolver
from .errors import UnderConstrainedResult
from .generator import GraphBuilder
from .lattice import ORIGIN, Coord, direction_between, neighbors
from .metrics import init_metrics

log = get_logger("grid")


@dataclass
class Grid:
    params: GridParams = field(default_factory=GridParams)
    cells: CellMap = field(default_factory=dict)
    edges: EdgeMap = field(default_factory=dict)
    enable_metrics: Optional[bool] = None

    def __post_init__(self):
        if self.enable_metrics is None:
            # explicit argument wins; the env var only sets the default
            val = os.environ.get("DRYSLAND_ENABLE_GENERATION_METRICS", "1").lower()
            self.enable_metrics = val not in {"0", "false", "no", ""}
        self.metrics: Dict[str, Any] = init_metrics() if self.enable_metrics else {}
        self.shortfall: Optional[UnderConstrainedResult] = None
        self.start: Coord = ORIGIN
        self.goal: Coord = ORIGIN
        self.seed: Optional[int] = self.params.seed
        if self.cells:
            self._designate()
        else:
            self.params = self.params.validate()
            self._run_pipeline()

    @property
    def radius(self) -> int:
        return self.params.radius

    @property
    def links_only(self) -> bool:
        return self.params.links_only

    def _run_pipeline(self):
        """Execute ordered generation phases, timing each one when metrics are on."""
        if self.enable_metrics:
            start = time.perf_counter()
            phase_times = {}

            def _phase(label, fn, *a, **k):
                ps = time.perf_counter(); r = fn(*a, **k); pe = time.perf_counter()
                phase_times[label] = int((pe - ps) * 1000)
                return r
        else:
            def _phase(label, fn, *a, **k):
                return fn(*a, **k)
        p = self.params
        seed = p.seed if p.seed is not None else random.randint(1, 1_000_000)
        self.seed = seed
        # builder and resolver share one sequential stream
        rng = random.Random(seed)
        build = _phase("build", GraphBuilder(rng).build, p.radius, p.coverage, p.strategy)
        resolved = _phase("resolve", ConstraintResolver(rng).resolve, build, p.radius, p.min_dead_ends, p.extra_links)
        self.cells = resolved.cells
        self.edges = resolved.edges
        self.cells[ORIGIN].open = True
        _phase("designate", self._designate)

        n_dead = len(resolved.dead_ends)
        if build.exhausted or n_dead < p.min_dead_ends:
            self.shortfall = UnderConstrainedResult(
                target_size=build.target_size,
                cells_visited=len(self.cells),
                min_dead_ends=p.min_dead_ends,
                dead_ends=n_dead,
            )
            log.warn(event="grid_under_constrained", seed=seed, **self.shortfall.to_dict())
        if self.enable_metrics:
            self.metrics.update(
                seed=seed,
                target_size=build.target_size,
                cells_visited=len(self.cells),
                frontier_exhausted=build.exhausted,
                tree_edges=len(self.tree_edges),
                loop_edges=resolved.loops_added,
                loop_candidates=resolved.loop_candidates,
                loops_skipped=resolved.loops_skipped,
                dead_ends=n_dead,
                stubs_grown=resolved.stubs_grown,
            )
            self.metrics["runtime_ms"] = int((time.perf_counter() - start) * 1000)
            self.metrics["phase_ms"] = phase_times
        log.info(
            event="grid_generated",
            strategy=p.strategy,
            radius=p.radius,
            cells=len(self.cells),
            edges=len(self.edges),
            dead_ends=n_dead,
            seed=seed,
        )

    def _designate(self):
        """Mark the origin as start and the farthest dead end as goal."""
        for cell in self.cells.values():
            if cell.role in (START, GOAL):
                cell.role = TREE
        self.start = ORIGIN
        self.cells[ORIGIN].role = START
        dist = self.distances()
        candidates = dead_ends(self.cells) or [c for c in self.cells if c != ORIGIN]
        if not candidates:
            self.goal = ORIGIN
            return
        # farthest first, then lowest lattice index (ascending q, r)
        self.goal = min(candidates, key=lambda c: (-dist.get(c, -1), c))
        self.cells[self.goal].role = GOAL

    # -- graph queries ---------------------------------------------------

    def linked(self, coord: Coord) -> List[Coord]:
        """Cells joined to ``coord`` by any edge, in direction order."""
        return [nb for nb in neighbors(coord) if edge_key(coord, nb) in self.edges]

    def distances(self, source: Coord = ORIGIN) -> Dict[Coord, int]:
        dist = {source: 0}
        q = deque([source])
        while q:
            cur = q.popleft()
            for nb in self.linked(cur):
                if nb not in dist:
                    dist[nb] = dist[cur] + 1
                    q.append(nb)
        return dist

    def connection_mask(self, coord: Coord) -> int:
        mask = 0
        for nb in self.linked(coord):
            mask |= 1 << direction_between(coord, nb)
        return mask

    @property
    def tree_edges(self) -> List[Edge]:
        return [e for e in self.edges.values() if e.kind == TREE_EDGE]

    @property
    def loop_edges(self) -> List[Edge]:
        return [e for e in self.edges.values() if e.kind == LOOP_EDGE]

    @property
    def dead_ends(self) -> List[Coord]:
        return dead_ends(self.cells)

    def is_connected(self) -> bool:
        return len(self.distances()) == len(self.cells)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "params": self.params.to_dict(),
            "radius": self.radius,
            "start": list(self.start),
            "goal": list(self.goal),
            "cells": len(self.cells),
            "tree_edges": len(self.tree_edges),
            "loop_edges": len(self.loop_edges),
            "dead_ends": len(self.dead_ends),
            "shortfall": self.shortfall.to_dict() if self.shortfall else None,
            "metrics": self.metrics,
        }


def generate_grid(params: GridParams, enable_metrics: Optional[bool] = None) -> Grid:
    """Validate ``params`` and generate a grid; ConfigurationError leaves nothing behind."""
    return Grid(params=params.validate(), enable_metrics=enable_metrics)


__all__ = ["Grid", "generate_grid"]
