"""Error taxonomy for grid generation and restore.

ConfigurationError and SerializationMismatch are raised. UnderConstrainedResult
is a plain report attached to a finished grid; generation never fails because a
target could not be met.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


class GridError(Exception):
    """Base class for grid engine failures."""


class ConfigurationError(GridError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message, "field": self.field}


class SerializationMismatch(GridError):
    def __init__(self, message: str, coordinate: Optional[tuple] = None):
        super().__init__(message if coordinate is None else f"{message} at {coordinate}")
        self.message = message
        self.coordinate = coordinate


@dataclass
class UnderConstrainedResult:
    """Shortfall report for a grid whose targets were only partly met."""

    target_size: int
    cells_visited: int
    min_dead_ends: int
    dead_ends: int

    @property
    def coverage_shortfall(self) -> int:
        return max(0, self.target_size - self.cells_visited)

    @property
    def dead_end_shortfall(self) -> int:
        return max(0, self.min_dead_ends - self.dead_ends)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["coverage_shortfall"] = self.coverage_shortfall
        d["dead_end_shortfall"] = self.dead_end_shortfall
        return d


__all__ = ["GridError", "ConfigurationError", "SerializationMismatch", "UnderConstrainedResult"]
