"""Spanning tree growth over the hex lattice."""
from __future__ import annotations

import math
import random
from typing import List, NamedTuple, Optional

from .cells import START, TREE, Cell, CellMap, EdgeMap, dead_ends, link
from .errors import ConfigurationError
from .lattice import ORIGIN, Coord, lattice_size
from .strategies import make_strategy, resolve_strategy


class BuildResult(NamedTuple):
    cells: CellMap
    edges: EdgeMap
    leaves: List[Coord]
    target_size: int
    exhausted: bool
    strategy: str


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def target_size(radius: int, coverage: float) -> int:
    total = lattice_size(radius)
    return max(1, min(total, round_half_up(coverage * total)))


class GraphBuilder:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def check(radius, coverage) -> None:
        if not isinstance(radius, int) or isinstance(radius, bool) or radius < 1:
            raise ConfigurationError("radius", "must be an integer >= 1")
        if not isinstance(coverage, (int, float)) or isinstance(coverage, bool) or not (0 < coverage <= 1):
            raise ConfigurationError("coverage", "must be in (0, 1]")

    def build(self, radius: int, coverage: float, strategy="dfs") -> BuildResult:
        self.check(radius, coverage)
        tag = resolve_strategy(strategy)
        target = target_size(radius, coverage)
        frontier = make_strategy(tag, radius, rng=self.rng, start=ORIGIN)
        exhausted = False
        while len(frontier.visited) < target:
            if frontier.next() is None:
                exhausted = True
                break

        cells: CellMap = {ORIGIN: Cell(ORIGIN, START, open=True)}
        edges: EdgeMap = {}
        for e in frontier.edges:
            cells[e.b] = Cell(e.b, TREE)
            link(cells, edges, e.a, e.b)
        return BuildResult(cells, edges, dead_ends(cells), target, exhausted, tag)


__all__ = ["GraphBuilder", "BuildResult", "round_half_up", "target_size"]
