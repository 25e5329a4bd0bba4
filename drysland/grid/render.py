"""Plain-text rendering of a grid for the CLI.

Rows run from r = -radius to +radius; each row is indented so hex columns
line up (pointy-top layout). Characters:

    S start    G goal    o visited    . lattice cell outside the network
"""
from typing import List

from .cells import GOAL, START
from .pipeline import Grid

CHARS = {START: "S", GOAL: "G"}
VISITED = "o"
EMPTY = "."


def render_ascii(grid: Grid) -> str:
    radius = grid.radius
    lines: List[str] = []
    for r in range(-radius, radius + 1):
        row = []
        for q in range(max(-radius, -r - radius), min(radius, -r + radius) + 1):
            cell = grid.cells.get((q, r))
            if cell is None:
                row.append(EMPTY)
            else:
                row.append(CHARS.get(cell.role, VISITED))
        lines.append(" " * abs(r) + " ".join(row))
    return "\n".join(lines)


__all__ = ["render_ascii"]
