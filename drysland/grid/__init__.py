"""Public grid engine interface.

Generation (Grid, generate_grid), interaction (GridAssembler, Block),
persistence (serialize, reconstruct, LevelState) and the parameter/error types.
"""

from .assembler import Block, GridAssembler, assemble  # noqa: F401
from .cells import GOAL, LOOP_EDGE, START, TREE, TREE_EDGE, UNVISITED, Cell, Edge  # noqa: F401
from .codec import LevelState, reconstruct, serialize  # noqa: F401
from .config import MAX_RADIUS, GridParams, LevelConfig  # noqa: F401
from .errors import ConfigurationError, GridError, SerializationMismatch, UnderConstrainedResult  # noqa: F401
from .pipeline import Grid, generate_grid  # noqa: F401
from .strategies import STRATEGIES, make_strategy, resolve_strategy  # noqa: F401

__all__ = [
    "Block",
    "GridAssembler",
    "assemble",
    "Cell",
    "Edge",
    "UNVISITED",
    "TREE",
    "START",
    "GOAL",
    "TREE_EDGE",
    "LOOP_EDGE",
    "LevelState",
    "serialize",
    "reconstruct",
    "MAX_RADIUS",
    "GridParams",
    "LevelConfig",
    "GridError",
    "ConfigurationError",
    "SerializationMismatch",
    "UnderConstrainedResult",
    "Grid",
    "generate_grid",
    "STRATEGIES",
    "make_strategy",
    "resolve_strategy",
]
