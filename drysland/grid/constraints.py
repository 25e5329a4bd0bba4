"""Post-processing passes over the generated spanning tree.

Two passes, always in this order:

1. Dead-end enforcement grows single-cell stubs until the minimum dead-end
   count is reached or no visited cell has a free lattice neighbor left.
   Inner cells host first; dead ends fork or extend only when no inner cell
   has room. Stubs may push the visited count past the coverage target;
   dead ends take precedence over exact coverage.
2. Loop augmentation adds cycle-forming edges between already visited
   neighbors, never letting the dead-end count fall under the floor.

Both passes mutate the cell/edge maps in place, mirroring how the other
structural passes operate on a shared grid.
"""
from __future__ import annotations

import math
import random
from typing import List, NamedTuple, Optional, Tuple

from .cells import LOOP_EDGE, START, TREE, Cell, CellMap, EdgeMap, dead_ends, edge_key, link
from .errors import ConfigurationError
from .generator import BuildResult
from .lattice import Coord, in_radius, neighbor, neighbors


class ResolveResult(NamedTuple):
    cells: CellMap
    edges: EdgeMap
    dead_ends: List[Coord]
    stubs_grown: int
    loop_candidates: int
    loop_target: int
    loops_added: int
    loops_skipped: int


def _is_dead_end(cell: Cell) -> bool:
    return cell.degree == 1 and cell.role != START


def _free_neighbors(cells: CellMap, coord: Coord, radius: int) -> List[Coord]:
    return [nb for nb in neighbors(coord) if nb not in cells and in_radius(nb, radius)]


def _grow(cells: CellMap, edges: EdgeMap, host: Coord, stub: Coord):
    cells[stub] = Cell(stub, TREE)
    link(cells, edges, host, stub)


def enforce_dead_ends(cells: CellMap, edges: EdgeMap, radius: int, minimum: int, rng: random.Random) -> int:
    """Grow stubs until ``minimum`` dead ends exist; return number of stubs grown.

    Hosts are tried in three tiers:

    1. a cell that is not a dead end: one stub, one new dead end;
    2. a dead end with two or more free neighbors: two stubs off it, the host
       stops being a dead end, net gain of one;
    3. a dead end with a single free neighbor: the corridor is extended by
       one cell. No immediate gain, but the old tip becomes a host for tier 1.

    Every step consumes a free lattice cell, so the loop ends once the count
    is met or no visited cell has a free in-radius neighbor.
    """
    grown = 0
    count = len(dead_ends(cells))
    while count < minimum:
        inner, forks, tips = [], [], []
        for coord in sorted(cells):
            free = _free_neighbors(cells, coord, radius)
            if not free:
                continue
            if not _is_dead_end(cells[coord]):
                inner.append((coord, free))
            elif len(free) >= 2:
                forks.append((coord, free))
            else:
                tips.append((coord, free))
        if inner:
            host, free = rng.choice(inner)
            _grow(cells, edges, host, rng.choice(free))
            grown += 1
        elif forks:
            host, free = rng.choice(forks)
            for stub in rng.sample(free, 2):
                _grow(cells, edges, host, stub)
            grown += 2
        elif tips:
            host, free = rng.choice(tips)
            _grow(cells, edges, host, free[0])
            grown += 1
        else:
            break
        count = len(dead_ends(cells))
    return grown


def loop_candidates(cells: CellMap, edges: EdgeMap) -> List[Tuple[Coord, Coord]]:
    """Adjacent visited pairs not yet linked, each listed once, in lattice order."""
    out = []
    for coord in sorted(cells):
        for d in range(3):
            nb = neighbor(coord, d)
            if nb in cells and edge_key(coord, nb) not in edges:
                out.append((coord, nb))
    return out


def augment_loops(cells: CellMap, edges: EdgeMap, ratio: float, minimum: int, rng: random.Random):
    candidates = loop_candidates(cells, edges)
    target = int(math.floor(ratio * len(candidates)))
    rng.shuffle(candidates)
    count = len(dead_ends(cells))
    added = skipped = 0
    for a, b in candidates:
        if added >= target:
            break
        lost = sum(1 for c in (a, b) if _is_dead_end(cells[c]))
        if lost and count - lost < minimum:
            skipped += 1
            continue
        link(cells, edges, a, b, LOOP_EDGE)
        added += 1
        count -= lost
    return len(candidates), target, added, skipped


class ConstraintResolver:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def check(min_dead_ends, extra_links) -> None:
        if not isinstance(extra_links, (int, float)) or isinstance(extra_links, bool) or not (0 <= extra_links <= 1):
            raise ConfigurationError("extra_links", "must be in [0, 1]")
        if not isinstance(min_dead_ends, int) or isinstance(min_dead_ends, bool) or min_dead_ends < 0:
            raise ConfigurationError("min_dead_ends", "must be an integer >= 0")

    def resolve(self, build: BuildResult, radius: int, min_dead_ends: int = 2, extra_links: float = 0.0) -> ResolveResult:
        self.check(min_dead_ends, extra_links)
        cells, edges = build.cells, build.edges
        stubs = enforce_dead_ends(cells, edges, radius, min_dead_ends, self.rng)
        n_candidates, target, added, skipped = augment_loops(cells, edges, extra_links, min_dead_ends, self.rng)
        return ResolveResult(cells, edges, dead_ends(cells), stubs, n_candidates, target, added, skipped)


__all__ = [
    "ConstraintResolver",
    "ResolveResult",
    "enforce_dead_ends",
    "augment_loops",
    "loop_candidates",
]
