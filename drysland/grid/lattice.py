"""Axial hex lattice geometry.

Coordinates are ``(q, r)`` tuples with the origin at ``(0, 0)``. Direction
order is fixed and doubles as the bit order of block connection masks:
bit ``i`` is set when an edge leaves the cell through ``DIRECTIONS[i]``.
Pure functions only; nothing here holds state.
"""
from __future__ import annotations

import math
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError

Coord = Tuple[int, int]

ORIGIN: Coord = (0, 0)
DIRECTIONS: Tuple[Coord, ...] = ((1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1))
ALL_DIRECTIONS_MASK = (1 << len(DIRECTIONS)) - 1
SQRT3 = math.sqrt(3)


def opposite(direction: int) -> int:
    return (direction + 3) % 6


def hex_distance(a: Coord, b: Coord = ORIGIN) -> int:
    dq = a[0] - b[0]
    dr = a[1] - b[1]
    return (abs(dq) + abs(dr) + abs(dq + dr)) // 2


def lattice_size(radius: int) -> int:
    if radius < 0:
        raise ConfigurationError("radius", "must be >= 0")
    return 3 * radius * radius + 3 * radius + 1


@lru_cache(maxsize=32)
def _cells(radius: int) -> Tuple[Coord, ...]:
    out = []
    for q in range(-radius, radius + 1):
        for r in range(max(-radius, -q - radius), min(radius, -q + radius) + 1):
            out.append((q, r))
    return tuple(out)


def cells_within_radius(radius: int) -> List[Coord]:
    """Return every coordinate within ``radius`` of the origin.

    Order is ascending ``q`` then ascending ``r``; that order is the lattice
    index used for deterministic tie-breaking elsewhere.
    """
    if radius < 0:
        raise ConfigurationError("radius", "must be >= 0")
    return list(_cells(radius))


@lru_cache(maxsize=32)
def lattice_index(radius: int) -> Dict[Coord, int]:
    return {c: i for i, c in enumerate(cells_within_radius(radius))}


def in_radius(coord: Coord, radius: int) -> bool:
    return hex_distance(coord) <= radius


def neighbor(coord: Coord, direction: int) -> Coord:
    dq, dr = DIRECTIONS[direction]
    return (coord[0] + dq, coord[1] + dr)


def neighbors(coord: Coord) -> List[Coord]:
    """Six adjacent coordinates in direction order, in radius or not."""
    q, r = coord
    return [(q + dq, r + dr) for dq, dr in DIRECTIONS]


def direction_between(a: Coord, b: Coord) -> Optional[int]:
    """Index of the direction leading from ``a`` to ``b`` or None if not adjacent."""
    delta = (b[0] - a[0], b[1] - a[1])
    try:
        return DIRECTIONS.index(delta)
    except ValueError:
        return None


def to_world(coord: Coord, size: float = 1.0) -> Tuple[float, float]:
    """Pointy-top axial to world ``(x, z)`` for block anchoring."""
    q, r = coord
    x = size * SQRT3 * (q + r / 2)
    z = size * 1.5 * r
    return round(x, 4), round(z, 4)


__all__ = [
    "Coord",
    "ORIGIN",
    "DIRECTIONS",
    "ALL_DIRECTIONS_MASK",
    "opposite",
    "hex_distance",
    "lattice_size",
    "cells_within_radius",
    "lattice_index",
    "in_radius",
    "neighbor",
    "neighbors",
    "direction_between",
    "to_world",
]
