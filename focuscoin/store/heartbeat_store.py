"""
Heartbeat Store — append-only SQLite log of synced heartbeats plus the
per-user counters the API reports.
"""

from __future__ import annotations

import json
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence


@dataclass
class UserRecord:
    id: int
    uuid: str
    created_at: float
    last_active: float
    total_coins: int = 0
    total_focus_time: int = 0        # seconds
    current_streak: int = 0
    best_streak: int = 0
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StoredHeartbeat:
    id: Optional[int]
    user_id: int
    session_id: str
    timestamp: float                 # unix seconds
    site: str
    site_type: str
    action: str
    coins_change: int = 0
    tab_id: Optional[int] = None
    url: Optional[str] = None


_USER_COLS = (
    "id, uuid, created_at, last_active, total_coins, total_focus_time, "
    "current_streak, best_streak, settings_json"
)
_HEARTBEAT_COLS = (
    "id, user_id, session_id, timestamp, site, site_type, action, coins_change, tab_id, url"
)


class HeartbeatStore:
    """Thread-safe SQLite-backed store (one connection per operation)."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, uuid: str) -> Optional[UserRecord]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLS} FROM users WHERE uuid = ?", (uuid,)
            ).fetchone()
        return _user_from_row(row) if row else None

    def get_or_create_user(
        self, uuid: str, default_settings: Optional[Dict[str, Any]] = None
    ) -> UserRecord:
        now = time.time()
        with self._conn() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO users (uuid, created_at, last_active, settings_json)
                VALUES (?, ?, ?, ?)
                """,
                (uuid, now, now, json.dumps(default_settings or {})),
            )
            row = conn.execute(
                f"SELECT {_USER_COLS} FROM users WHERE uuid = ?", (uuid,)
            ).fetchone()
        return _user_from_row(row)

    def touch_user(self, user_id: int, ts: Optional[float] = None) -> None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE users SET last_active = ? WHERE id = ?",
                (ts if ts is not None else time.time(), user_id),
            )

    def update_user_settings(self, user_id: int, settings: Dict[str, Any]) -> None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE users SET settings_json = ?, last_active = ? WHERE id = ?",
                (json.dumps(settings), time.time(), user_id),
            )

    def update_user_stats(
        self,
        user_id: int,
        total_focus_time: int,
        current_streak: int,
        best_streak: int,
    ) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                UPDATE users
                   SET total_focus_time = ?, current_streak = ?, best_streak = ?
                 WHERE id = ?
                """,
                (total_focus_time, current_streak, best_streak, user_id),
            )

    # ------------------------------------------------------------------
    # Heartbeats
    # ------------------------------------------------------------------

    def insert_heartbeats(self, user_id: int, heartbeats: Sequence[StoredHeartbeat]) -> int:
        """
        Bulk insert and add the summed coin change to the user's total in
        one transaction. Returns the new total.
        """
        coins_change = sum(h.coins_change for h in heartbeats)
        with self._conn() as conn:
            conn.executemany(
                """
                INSERT INTO heartbeats
                    (user_id, session_id, timestamp, site, site_type, action,
                     coins_change, tab_id, url)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        user_id, h.session_id, h.timestamp, h.site, h.site_type,
                        h.action, h.coins_change, h.tab_id, h.url,
                    )
                    for h in heartbeats
                ],
            )
            conn.execute(
                "UPDATE users SET total_coins = total_coins + ?, last_active = ? WHERE id = ?",
                (coins_change, time.time(), user_id),
            )
            total = conn.execute(
                "SELECT total_coins FROM users WHERE id = ?", (user_id,)
            ).fetchone()[0]
        return int(total)

    def query_heartbeats(
        self,
        user_id: int,
        since: Optional[float] = None,
        until: Optional[float] = None,
    ) -> List[StoredHeartbeat]:
        """Heartbeats for one user, oldest first. ``until`` is exclusive."""
        clauses = ["user_id = ?"]
        params: list = [user_id]
        if since is not None:
            clauses.append("timestamp >= ?")
            params.append(since)
        if until is not None:
            clauses.append("timestamp < ?")
            params.append(until)

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT {_HEARTBEAT_COLS} FROM heartbeats "
                f"WHERE {' AND '.join(clauses)} ORDER BY timestamp ASC, id ASC",
                params,
            ).fetchall()
        return [StoredHeartbeat(*row) for row in rows]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id               INTEGER PRIMARY KEY AUTOINCREMENT,
                    uuid             TEXT    NOT NULL UNIQUE,
                    created_at       REAL    NOT NULL,
                    last_active      REAL    NOT NULL,
                    total_coins      INTEGER NOT NULL DEFAULT 0,
                    total_focus_time INTEGER NOT NULL DEFAULT 0,
                    current_streak   INTEGER NOT NULL DEFAULT 0,
                    best_streak      INTEGER NOT NULL DEFAULT 0,
                    settings_json    TEXT    NOT NULL DEFAULT '{}'
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS heartbeats (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id      INTEGER NOT NULL REFERENCES users(id),
                    session_id   TEXT    NOT NULL,
                    timestamp    REAL    NOT NULL,
                    site         TEXT    NOT NULL,
                    site_type    TEXT    NOT NULL,
                    action       TEXT    NOT NULL,
                    coins_change INTEGER NOT NULL DEFAULT 0,
                    tab_id       INTEGER,
                    url          TEXT
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_hb_user_ts ON heartbeats(user_id, timestamp)"
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()


def _user_from_row(row: tuple) -> UserRecord:
    *fields, settings_json = row
    return UserRecord(*fields, settings=json.loads(settings_json or "{}"))
