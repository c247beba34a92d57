"""
Heartbeat Buffer — ordered queue of classified observations waiting to be
synced to the ingestion API.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

from .classifier import SiteType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeartbeatRecord:
    timestamp: float                 # unix seconds
    site: str                        # normalised hostname
    site_type: SiteType
    coins_change: int
    session_id: Optional[str]
    tab_id: Optional[int] = None
    url: Optional[str] = None

    @property
    def action(self) -> str:
        return "focus" if self.site_type == SiteType.PRODUCTIVE else "distract"

    def to_wire(self) -> Dict[str, Any]:
        """JSON shape consumed by POST /api/sessions/heartbeats (ms timestamps)."""
        payload: Dict[str, Any] = {
            "timestamp": int(self.timestamp * 1000),
            "site": self.site,
            "siteType": self.site_type.value,
            "action": self.action,
            "coinsChange": self.coins_change,
            "sessionId": self.session_id,
        }
        if self.tab_id is not None:
            payload["tabId"] = self.tab_id
        if self.url is not None:
            payload["url"] = self.url
        return payload


class HeartbeatBuffer:
    """
    Insertion-ordered buffer.

    flush_threshold  — length at which the engine asks for a sync
    capacity         — hard bound while the API is unreachable; the oldest
                       record is dropped on overflow
    """

    def __init__(self, flush_threshold: int = 10, capacity: int = 1000):
        self.flush_threshold = flush_threshold
        self.capacity = max(capacity, flush_threshold)
        self._records: Deque[HeartbeatRecord] = deque()
        self._head = 0                   # records ever removed from the front

    @property
    def head(self) -> int:
        return self._head

    def append(self, record: HeartbeatRecord) -> None:
        self._records.append(record)
        if len(self._records) > self.capacity:
            dropped = self._records.popleft()
            self._head += 1
            logger.warning(
                "Heartbeat buffer over capacity (%d), dropped record from %s",
                self.capacity, dropped.site,
            )

    def snapshot(self) -> List[HeartbeatRecord]:
        return list(self._records)

    def drop_sent(self, count: int, head: Optional[int] = None) -> None:
        """
        Remove the first *count* records (the ones a flush delivered).
        Pass the ``head`` seen when the snapshot was taken so records evicted
        by overflow in the meantime are not counted twice.
        """
        if head is not None:
            count -= self._head - head
        for _ in range(max(0, min(count, len(self._records)))):
            self._records.popleft()
            self._head += 1

    def clear(self) -> None:
        self._head += len(self._records)
        self._records.clear()

    def is_full(self) -> bool:
        return len(self._records) >= self.flush_threshold

    def __len__(self) -> int:
        return len(self._records)
