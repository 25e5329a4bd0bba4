"""
project: Drysland
module: models.py
License: MIT

Database models used by the Drysland server.

Notes:
- A player is an anonymous id kept in the Flask session; one SavedLevel row
  per player holds the latest LevelState.
- GameConfig values are JSON strings so tunables change without code changes.
"""

import datetime

from drysland import db


class SavedLevel(db.Model):
    """Latest saved level for one player.

    Attributes:
        player_id: Opaque id from the Flask session.
        level: 1-based level index of the saved grid.
        timestamp: Save time in ms since epoch, as produced by the codec.
        blocks: JSON list of {coordinate, connections, open}.
    """

    __tablename__ = "saved_levels"
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    level = db.Column(db.Integer, nullable=False, default=1)
    timestamp = db.Column(db.BigInteger, nullable=False, default=0)
    blocks = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    def to_state_dict(self):
        return {"level": self.level, "timestamp": self.timestamp, "blocks": self.blocks}

    def __repr__(self):
        return f"<SavedLevel player={self.player_id} level={self.level}>"


class GameConfig(db.Model):
    """Key/value style game configuration storage.

    Example rows:
        key='grid_levels', value='{"levels_per_radius":3,"base_coverage":0.5,...}'
    """

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(80), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=False)

    @staticmethod
    def get(key: str):
        row = GameConfig.query.filter_by(key=key).first()
        return row.value if row else None

    @staticmethod
    def set(key: str, value: str):
        row = GameConfig.query.filter_by(key=key).first()
        if not row:
            row = GameConfig(key=key, value=value)
            db.session.add(row)
        else:
            row.value = value
        db.session.commit()
