from typing import Dict, FrozenSet, NamedTuple, Tuple

from .lattice import Coord, hex_distance

# Cell roles
UNVISITED = "unvisited"
TREE = "tree"
START = "start"
GOAL = "goal"

# Edge kinds
TREE_EDGE = "tree"
LOOP_EDGE = "loop"


class Cell:
    """Lattice cell taking part in the path network."""
    __slots__ = ("coord", "role", "degree", "open")
    def __init__(self, coord: Coord, role: str = UNVISITED, open: bool = False):
        self.coord = coord
        self.role = role
        self.degree = 0
        self.open = open

    @property
    def distance(self) -> int:
        return hex_distance(self.coord)

    def to_dict(self):
        return {"coordinate": list(self.coord), "role": self.role, "degree": self.degree, "open": self.open}

    def __repr__(self):
        return f"<Cell {self.coord} {self.role} deg={self.degree}>"


class Edge(NamedTuple):
    a: Coord
    b: Coord
    kind: str = TREE_EDGE

    @property
    def key(self) -> FrozenSet[Coord]:
        return frozenset((self.a, self.b))


def edge_key(a: Coord, b: Coord) -> FrozenSet[Coord]:
    return frozenset((a, b))


CellMap = Dict[Coord, Cell]
EdgeMap = Dict[FrozenSet[Coord], Edge]
Pair = Tuple[Coord, Coord]


def dead_ends(cells: CellMap) -> list:
    """Coordinates of non-start cells with exactly one incident edge."""
    return [c for c, cell in cells.items() if cell.degree == 1 and cell.role != START]


def link(cells: CellMap, edges: EdgeMap, a: Coord, b: Coord, kind: str = TREE_EDGE) -> Edge:
    key = edge_key(a, b)
    if key in edges:
        raise ValueError(f"duplicate edge {a}-{b}")
    edge = Edge(a, b, kind)
    edges[key] = edge
    cells[a].degree += 1
    cells[b].degree += 1
    return edge
