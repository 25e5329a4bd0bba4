"""Typed publish/subscribe bus.

Each game session owns one EventBus. Producers publish dataclass events;
subscribers register per event type and get back an unsubscribe callable, so
components that are torn down (a disposed grid, a closed socket) can detach
cleanly.

    bus = EventBus()
    off = bus.subscribe(LevelCompleted, lambda ev: print(ev.level))
    bus.publish(LevelCompleted(level=3, coordinate=(2, -1)))
    off()

Handler exceptions are logged and do not stop delivery to other subscribers.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from .logging_utils import get_logger

log = get_logger("events")

Coord = Tuple[int, int]


@dataclass(frozen=True)
class Event:
    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["type"] = type(self).__name__
        return d


@dataclass(frozen=True)
class GridGenerated(Event):
    level: Optional[int]
    cells: int
    restored: bool = False


@dataclass(frozen=True)
class GridDisposed(Event):
    level: Optional[int]


@dataclass(frozen=True)
class BlockActivated(Event):
    coordinate: Coord
    opened: Tuple[Coord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PointerHover(Event):
    """Intersection result supplied by the pointer collaborator."""

    intersected: Tuple[Coord, ...]


@dataclass(frozen=True)
class HoverChanged(Event):
    hovered: Tuple[Coord, ...]


@dataclass(frozen=True)
class LevelCompleted(Event):
    level: Optional[int]
    coordinate: Coord


@dataclass(frozen=True)
class LevelSaved(Event):
    level: int
    timestamp: int


Handler = Callable[[Event], None]


class EventBus:
    def __init__(self):
        self._handlers: Dict[Type[Event], List[Handler]] = {}

    def subscribe(self, event_type: Type[Event], handler: Handler) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe():
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Event) -> int:
        """Deliver ``event`` to its type's subscribers; return how many were called."""
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception as exc:  # keep delivering to remaining handlers
                log.error(event="handler_failed", event_type=type(event).__name__, error=repr(exc))
            delivered += 1
        return delivered

    def subscriber_count(self, event_type: Optional[Type[Event]] = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(h) for h in self._handlers.values())


__all__ = [
    "Event",
    "EventBus",
    "GridGenerated",
    "GridDisposed",
    "BlockActivated",
    "HoverChanged",
    "PointerHover",
    "LevelCompleted",
    "LevelSaved",
]
