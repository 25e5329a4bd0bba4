from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .strategies import resolve_strategy

MAX_RADIUS = 10
MIN_COVERAGE = 0.1
MIN_DEAD_ENDS = 2

# camelCase keys sent by the tuning panel
_KEY_ALIASES = {
    "extraLinks": "extra_links",
    "extraLinksRatio": "extra_links",
    "minDeadEnds": "min_dead_ends",
    "linksOnly": "links_only",
}


def _num(field: str, value, cast):
    if isinstance(value, bool):
        raise ConfigurationError(field, "must be a number")
    try:
        out = cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(field, "must be a number") from None
    if cast is int and isinstance(value, float) and value != out:
        raise ConfigurationError(field, "must be an integer")
    return out


@dataclass(frozen=True)
class GridParams:
    radius: int = 1
    coverage: float = 0.5
    strategy: str = "dfs"
    extra_links: float = 0.0
    min_dead_ends: int = 2
    links_only: bool = False
    seed: Optional[int] = None

    def validate(self, max_radius: int = MAX_RADIUS) -> "GridParams":
        """Check production ranges and return a normalized copy.

        Raises ConfigurationError naming the first offending field.
        """
        radius = _num("radius", self.radius, int)
        if not 1 <= radius <= max_radius:
            raise ConfigurationError("radius", f"must be between 1 and {max_radius}")
        coverage = _num("coverage", self.coverage, float)
        if not MIN_COVERAGE <= coverage <= 1:
            raise ConfigurationError("coverage", f"must be between {MIN_COVERAGE} and 1")
        extra = _num("extra_links", self.extra_links, float)
        if not 0 <= extra <= 1:
            raise ConfigurationError("extra_links", "must be between 0 and 1")
        dead = _num("min_dead_ends", self.min_dead_ends, int)
        if dead < MIN_DEAD_ENDS:
            raise ConfigurationError("min_dead_ends", f"must be >= {MIN_DEAD_ENDS}")
        seed = None if self.seed is None else _num("seed", self.seed, int)
        return replace(
            self,
            radius=radius,
            coverage=coverage,
            strategy=resolve_strategy(self.strategy),
            extra_links=extra,
            min_dead_ends=dead,
            links_only=bool(self.links_only),
            seed=seed,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["GridParams"] = None) -> "GridParams":
        """Overlay known keys of ``data`` onto ``base`` (defaults when None). Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        updates = {}
        for k, v in (data or {}).items():
            k = _KEY_ALIASES.get(k, k)
            if k in known:
                updates[k] = v
        return replace(base or cls(), **updates)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LevelConfig:
    """Deterministic level curve mapping a 0-based level index to grid parameters."""

    max_radius: int = MAX_RADIUS
    levels_per_radius: int = 3
    base_coverage: float = 0.5
    coverage_step: float = 0.05
    max_coverage: float = 1.0
    extra_links_step: float = 0.02
    max_extra_links: float = 0.3
    base_dead_ends: int = 2
    levels_per_dead_end: int = 4
    max_dead_ends: int = 10
    strategy: str = "dfs"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LevelConfig":
        cfg = cls()
        if not isinstance(data, dict):
            return cfg
        for f in fields(cls):
            if f.name not in data:
                continue
            default = getattr(cfg, f.name)
            try:
                value = type(default)(data[f.name])
            except (TypeError, ValueError):
                continue
            setattr(cfg, f.name, value)
        return cfg

    def generate_level(self, index: int) -> GridParams:
        if not isinstance(index, int) or index < 0:
            raise ConfigurationError("level", "must be an integer >= 0")
        cap = min(self.max_radius, MAX_RADIUS)
        radius = min(cap, 1 + index // max(1, self.levels_per_radius))
        coverage = round(min(self.max_coverage, self.base_coverage + self.coverage_step * index), 2)
        extra = round(min(self.max_extra_links, self.extra_links_step * index), 2)
        dead = min(self.max_dead_ends, self.base_dead_ends + index // max(1, self.levels_per_dead_end))
        return GridParams(
            radius=radius,
            coverage=coverage,
            strategy=self.strategy,
            extra_links=extra,
            min_dead_ends=dead,
        ).validate(cap)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["GridParams", "LevelConfig", "MAX_RADIUS", "MIN_COVERAGE", "MIN_DEAD_ENDS"]
