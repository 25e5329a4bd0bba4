"""Frontier expansion strategies.

All three variants share the same frontier of ``(visited, unvisited)`` pairs
and differ only in which pair leaves the frontier next:

* ``DepthFirst``  - last in, first out. Long winding corridors.
* ``BreadthFirst`` - first in, first out. Short branches radiating from start.
* ``Prim``        - uniform random pick among pending pairs. Irregular,
  bushy trees with many short side paths.

Pairs whose target got visited after they were queued are stale; ``next()``
discards them silently so each call still yields exactly one new tree edge.
"""
from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Type, Union

from .cells import Edge, Pair
from .errors import ConfigurationError
from .lattice import ORIGIN, Coord, in_radius, neighbors


class FrontierStrategy(ABC):
    tag: str = ""

    def __init__(self, radius: int, rng: Optional[random.Random] = None, start: Coord = ORIGIN):
        self.radius = radius
        self.rng = rng or random.Random()
        self.start = start
        self.visited: Set[Coord] = {start}
        self.edges: List[Edge] = []
        self._enqueue_from(start)

    # frontier container hooks
    @abstractmethod
    def _push(self, pair: Pair) -> None: ...

    @abstractmethod
    def _pop(self) -> Optional[Pair]: ...

    @abstractmethod
    def _iter_pending(self): ...

    def _enqueue_from(self, cell: Coord) -> None:
        for nb in neighbors(cell):
            if nb not in self.visited and in_radius(nb, self.radius):
                self._push((cell, nb))

    def next(self) -> Optional[Edge]:
        """Expand one frontier pair; return the new tree edge or None when exhausted."""
        while True:
            pair = self._pop()
            if pair is None:
                return None
            src, dst = pair
            if dst in self.visited:
                continue
            self.visited.add(dst)
            edge = Edge(src, dst)
            self.edges.append(edge)
            self._enqueue_from(dst)
            return edge

    @property
    def exhausted(self) -> bool:
        return not any(dst not in self.visited for _src, dst in self._iter_pending())


class DepthFirst(FrontierStrategy):
    tag = "dfs"

    def __init__(self, *a, **k):
        self._stack: List[Pair] = []
        super().__init__(*a, **k)

    def _push(self, pair):
        self._stack.append(pair)

    def _pop(self):
        return self._stack.pop() if self._stack else None

    def _iter_pending(self):
        return iter(self._stack)


class BreadthFirst(FrontierStrategy):
    tag = "bfs"

    def __init__(self, *a, **k):
        self._queue: Deque[Pair] = deque()
        super().__init__(*a, **k)

    def _push(self, pair):
        self._queue.append(pair)

    def _pop(self):
        return self._queue.popleft() if self._queue else None

    def _iter_pending(self):
        return iter(self._queue)


class Prim(FrontierStrategy):
    tag = "prim"

    def __init__(self, *a, **k):
        self._pool: List[Pair] = []
        super().__init__(*a, **k)

    def _push(self, pair):
        self._pool.append(pair)

    def _pop(self):
        if not self._pool:
            return None
        # swap-remove keeps the pick O(1) and still uniform
        i = self.rng.randrange(len(self._pool))
        self._pool[i], self._pool[-1] = self._pool[-1], self._pool[i]
        return self._pool.pop()

    def _iter_pending(self):
        return iter(self._pool)


STRATEGIES: Dict[str, Type[FrontierStrategy]] = {
    DepthFirst.tag: DepthFirst,
    BreadthFirst.tag: BreadthFirst,
    Prim.tag: Prim,
}
_ALIASES = {
    "depth_first": "dfs",
    "breadth_first": "bfs",
    "prims": "prim",
    # numeric tags used by the tuning panel list
    "1": "dfs",
    "2": "bfs",
    "3": "prim",
}


def resolve_strategy(tag: Union[str, int, None]) -> str:
    """Return the canonical strategy tag or raise ConfigurationError."""
    if isinstance(tag, bool) or tag is None:
        raise ConfigurationError("strategy", f"unrecognized strategy {tag!r}")
    key = str(tag).strip().lower()
    key = _ALIASES.get(key, key)
    if key not in STRATEGIES:
        raise ConfigurationError("strategy", f"unrecognized strategy {tag!r}")
    return key


def make_strategy(tag, radius: int, rng: Optional[random.Random] = None, start: Coord = ORIGIN) -> FrontierStrategy:
    return STRATEGIES[resolve_strategy(tag)](radius, rng=rng, start=start)


__all__ = [
    "FrontierStrategy",
    "DepthFirst",
    "BreadthFirst",
    "Prim",
    "STRATEGIES",
    "resolve_strategy",
    "make_strategy",
]
