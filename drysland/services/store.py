"""Level persistence backends.

Stores hand back the raw dict form of the last saved LevelState (or None);
the session decodes it so a corrupt row is rejected by the codec in one place.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from drysland import db
from drysland.grid.codec import LevelState
from drysland.models import SavedLevel


class LevelStore(Protocol):
    def save(self, state: LevelState) -> None: ...

    def load(self) -> Optional[Dict[str, Any]]: ...

    def clear(self) -> None: ...


class MemoryLevelStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data = initial
        self.saves = 0

    def save(self, state: LevelState) -> None:
        self.data = state.to_dict()
        self.saves += 1

    def load(self) -> Optional[Dict[str, Any]]:
        return self.data

    def clear(self) -> None:
        self.data = None


class SqlLevelStore:
    """One SavedLevel row per player; requires an app context."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    def _row(self) -> Optional[SavedLevel]:
        return SavedLevel.query.filter_by(player_id=self.player_id).first()

    def save(self, state: LevelState) -> None:
        row = self._row()
        if row is None:
            row = SavedLevel(player_id=self.player_id)
            db.session.add(row)
        row.level = state.level
        row.timestamp = state.timestamp
        row.blocks = [dict(b) for b in state.blocks]
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def load(self) -> Optional[Dict[str, Any]]:
        row = self._row()
        return row.to_state_dict() if row else None

    def clear(self) -> None:
        row = self._row()
        if row is not None:
            db.session.delete(row)
            db.session.commit()


__all__ = ["LevelStore", "MemoryLevelStore", "SqlLevelStore"]
