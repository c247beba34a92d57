"""
Agent State Store — the extension's local key/value storage, persisted to
data/agent_state.json.

Keys:
  focus_coins         current balance
  today_coins         coins earned today
  focus_streak        last streak reported by the API
  session_active      whether a session was running at last save
  session_start_time  unix seconds, or None
  focus_uuid          anonymous user id, generated once
  last_active_date    "YYYY-MM-DD" of the last roll-over check
"""

from __future__ import annotations

import json
import logging
import uuid as uuidlib
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import config

logger = logging.getLogger(__name__)


def _defaults() -> Dict[str, Any]:
    return {
        "focus_coins": config.initial_coins,
        "today_coins": 0,
        "focus_streak": 0,
        "session_active": False,
        "session_start_time": None,
        "focus_uuid": None,
        "last_active_date": date.today().isoformat(),
    }


class AgentStateStore:

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else config.data_dir / config.agent_state_file
        self._data: Dict[str, Any] = _defaults()
        self._load()

    # ------------------------------------------------------------------
    # Key/value access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, **values: Any) -> None:
        for k, v in values.items():
            if k not in self._data:
                raise KeyError(f"Unknown state key: {k!r}")
            self._data[k] = v
        self._save()

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)

    # ------------------------------------------------------------------
    # Derived operations
    # ------------------------------------------------------------------

    def ensure_uuid(self) -> str:
        if not self._data.get("focus_uuid"):
            self.set(focus_uuid=str(uuidlib.uuid4()))
        return self._data["focus_uuid"]

    def roll_over_day(self, today: Optional[date] = None) -> bool:
        """Zero today_coins when the calendar day changed. Returns True if it did."""
        today_str = (today or date.today()).isoformat()
        if self._data.get("last_active_date") == today_str:
            return False
        self.set(today_coins=0, last_active_date=today_str)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            saved = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.warning("Malformed agent state file %s, using defaults", self.path)
            return
        for k, v in saved.items():
            if k in self._data:
                self._data[k] = v

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2))
