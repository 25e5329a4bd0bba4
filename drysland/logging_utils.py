"""Minimal structured logging helper.

Wraps print() to emit key=value pairs with a timestamp and level, so engine
events (grid generated, shortfall, restore fallback) are easy to grep and to
parse without configuring the stdlib logging tree.

Usage:
    from drysland.logging_utils import get_logger
    log = get_logger("grid")
    log.info(event="grid_generated", radius=3, cells=24)

    # fields carried by every record of a session
    plog = log.bind(player="abc123")
    plog.info(event="level_saved", level=4)

Reserved keys: level, ts. A caller field with a reserved name (a game level
number, say) is emitted as ``game_level`` / ``game_ts`` instead of clobbering
the record's own keys.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
RESERVED = ("level", "ts")


def _threshold() -> int:
    return LEVELS.get(os.getenv("DRYSLAND_LOG_LEVEL", "info").lower(), 20)


def _json_mode() -> bool:
    return os.getenv("DRYSLAND_LOG_JSON", "0") in ("1", "true", "TRUE", "yes", "on")


def _record(lvl: str, fields: dict) -> dict:
    rec = {"level": lvl, "ts": int(time.time())}
    for k, v in fields.items():
        if v is None:
            continue
        rec[f"game_{k}" if k in RESERVED else k] = v
    return rec


def _format(lvl: str, fields: dict) -> str:
    rec = _record(lvl, fields)
    if _json_mode():
        try:
            return json.dumps(rec, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return json.dumps({"level": lvl, "ts": rec["ts"], "error": "json_encode_failed"})
    parts = []
    for k, v in rec.items():
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            parts.append(f"{k}={v}")
        elif isinstance(v, tuple):
            # coordinates: (q, r) -> q,r
            parts.append(f"{k}={','.join(str(x) for x in v)}")
        else:
            parts.append(f"{k}={str(v).replace(' ', '_')}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None, context: dict | None = None):
        self.name = name or "drysland"
        self.context = dict(context or {})

    def bind(self, **context) -> "_Logger":
        """Return a logger that adds ``context`` to every record."""
        merged = dict(self.context)
        merged.update(context)
        return _Logger(self.name, merged)

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < _threshold():
            return
        rec = {"logger": self.name}
        rec.update(self.context)
        rec.update(fields)
        print(_format(lvl, rec), file=sys.stdout if lvl != "error" else sys.stderr)

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE = {}


def get_logger(name: str):
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("drysland")
