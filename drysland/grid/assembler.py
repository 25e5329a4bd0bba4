"""Live interaction surface over a finished grid.

GridAssembler turns every visited cell into a Block carrying a connection
bitmask and a world anchor, then tracks which block is active. Clicking an
open block linked to the active one advances the path and reveals the next
blocks; reaching the goal publishes LevelCompleted on the session bus.

Hover input arrives either as a direct ``hover_set`` call or as a
PointerHover event on the bus; the latter binding is dropped by ``dispose``.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from drysland.events import BlockActivated, EventBus, GridDisposed, HoverChanged, LevelCompleted, PointerHover
from drysland.logging_utils import get_logger

from .cells import Cell
from .lattice import Coord, direction_between, neighbor, to_world
from .pipeline import Grid

log = get_logger("assembler")

BLOCK_SIZE = 1.0


class Block:
    __slots__ = ("cell", "connections", "anchor", "hovered", "selected", "cast_shadow")

    def __init__(self, cell: Cell, connections: int, anchor: Tuple[float, float]):
        self.cell = cell
        self.connections = connections
        self.anchor = anchor
        self.hovered = False
        self.selected = False
        self.cast_shadow = True

    @property
    def coordinate(self) -> Coord:
        return self.cell.coord

    @property
    def open(self) -> bool:
        return self.cell.open

    @open.setter
    def open(self, value: bool):
        self.cell.open = bool(value)

    def connects(self, direction: int) -> bool:
        return bool(self.connections & (1 << direction))

    def linked_to(self, other: Coord) -> bool:
        d = direction_between(self.coordinate, other)
        return d is not None and self.connects(d)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinate": list(self.coordinate),
            "role": self.cell.role,
            "connections": self.connections,
            "anchor": list(self.anchor),
            "open": self.open,
            "hovered": self.hovered,
            "selected": self.selected,
            "cast_shadow": self.cast_shadow,
        }

    def __repr__(self):
        return f"<Block {self.coordinate} mask={self.connections:06b} open={self.open}>"


class GridAssembler:
    def __init__(self, grid: Grid, bus: Optional[EventBus] = None, level: Optional[int] = None, block_size: float = BLOCK_SIZE):
        self.grid = grid
        self.bus = bus
        self.level = level
        self.block_size = block_size
        self.blocks: Dict[Coord, Block] = {}
        self.active: Optional[Coord] = grid.start
        self.completed = False
        self.disposed = False
        self.shadows = True
        self._unsubscribers: List[Callable[[], None]] = []
        self._materialize()
        if bus is not None:
            self._unsubscribers.append(bus.subscribe(PointerHover, lambda ev: self.hover_set(ev.intersected)))

    def _materialize(self):
        if self.grid.links_only:
            log.debug(event="assemble_skipped", reason="links_only", cells=len(self.grid.cells))
            return
        for coord in sorted(self.grid.cells):
            cell = self.grid.cells[coord]
            self.blocks[coord] = Block(cell, self.grid.connection_mask(coord), to_world(coord, self.block_size))
        start = self.blocks[self.grid.start]
        start.open = True
        start.selected = True
        self._reveal(self.grid.start)

    def _reveal(self, coord: Coord) -> Tuple[Coord, ...]:
        """Open every block linked to ``coord``; return the ones that were closed."""
        block = self.blocks[coord]
        opened = []
        for d in range(6):
            if not block.connects(d):
                continue
            nb = self.blocks.get(neighbor(coord, d))
            if nb is not None and not nb.open:
                nb.open = True
                opened.append(nb.coordinate)
        return tuple(opened)

    def _publish(self, event):
        if self.bus is not None:
            self.bus.publish(event)

    @property
    def goal(self) -> Coord:
        return self.grid.goal

    def block(self, coord: Coord) -> Optional[Block]:
        return self.blocks.get(tuple(coord))

    def open_block(self, coord: Coord) -> bool:
        block = self.block(coord)
        if block is None:
            return False
        block.open = True
        return True

    def close_block(self, coord: Coord) -> bool:
        block = self.block(coord)
        # the active block stays open so play can continue
        if block is None or block.coordinate == self.active:
            return False
        block.open = False
        return True

    def on_click(self, coord: Coord) -> bool:
        """Advance the active block to ``coord`` if the move is legal."""
        if self.disposed or self.completed:
            return False
        coord = tuple(coord)
        block = self.blocks.get(coord)
        current = self.blocks.get(self.active) if self.active is not None else None
        if block is None or current is None or not block.open or not current.linked_to(coord):
            return False
        current.selected = False
        block.selected = True
        self.active = coord
        opened = self._reveal(coord)
        self._publish(BlockActivated(coordinate=coord, opened=opened))
        if coord == self.grid.goal and coord != self.grid.start:
            self.completed = True
            log.info(event="level_completed", level=self.level, goal=coord)
            self._publish(LevelCompleted(level=self.level, coordinate=coord))
        return True

    def hover_set(self, intersected: Iterable[Coord]) -> List[Coord]:
        """Mark exactly the intersected blocks as hovered; unknown coordinates are ignored."""
        wanted = {tuple(c) for c in intersected or ()}
        changed = False
        hovered = []
        for coord, block in self.blocks.items():
            flag = coord in wanted
            if block.hovered != flag:
                block.hovered = flag
                changed = True
            if flag:
                hovered.append(coord)
        hovered.sort()
        if changed:
            self._publish(HoverChanged(hovered=tuple(hovered)))
        return hovered

    def set_shadows(self, enabled: bool):
        self.shadows = bool(enabled)
        for block in self.blocks.values():
            block.cast_shadow = self.shadows

    def dispose(self):
        if self.disposed:
            return
        for off in self._unsubscribers:
            off()
        self._unsubscribers.clear()
        released = len(self.blocks)
        self.blocks.clear()
        self.active = None
        self.disposed = True
        log.debug(event="grid_disposed", level=self.level, blocks=released)
        self._publish(GridDisposed(level=self.level))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "start": list(self.grid.start),
            "goal": list(self.grid.goal),
            "active": list(self.active) if self.active is not None else None,
            "completed": self.completed,
            "links_only": self.grid.links_only,
            "shadows": self.shadows,
            "blocks": [b.to_dict() for b in self.blocks.values()],
        }


def assemble(grid: Grid, bus: Optional[EventBus] = None, level: Optional[int] = None) -> GridAssembler:
    return GridAssembler(grid, bus=bus, level=level)


__all__ = ["Block", "GridAssembler", "assemble", "BLOCK_SIZE"]
