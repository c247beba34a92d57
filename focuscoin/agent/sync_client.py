"""
Sync Client — delivers buffered heartbeats and session lifecycle pings to the
FocusCoin ingestion API.

Heartbeat delivery is at-least-once: the buffer is only trimmed after the API
confirms the batch, so a failed or unconfirmed call leaves everything in
place for the next attempt. Lifecycle pings are fire-and-forget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

import httpx

from ..config import config
from .buffer import HeartbeatBuffer, HeartbeatRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SyncOk:
    processed: int
    coins_change: int = 0
    total_coins: Optional[int] = None


@dataclass(frozen=True)
class NetworkError:
    reason: str


@dataclass(frozen=True)
class RejectedError:
    status_code: int
    reason: str = ""


SyncResult = Union[SyncOk, NetworkError, RejectedError]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SyncClient:

    def __init__(
        self,
        api_base: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = (api_base or config.api_base).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_base,
            timeout=timeout_s if timeout_s is not None else config.http_timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Heartbeats
    # ------------------------------------------------------------------

    async def send_heartbeats(
        self, uuid: str, records: Sequence[HeartbeatRecord]
    ) -> SyncResult:
        body = {"uuid": uuid, "heartbeats": [r.to_wire() for r in records]}
        try:
            response = await self._client.post("/sessions/heartbeats", json=body)
        except httpx.HTTPError as e:
            return NetworkError(reason=str(e) or type(e).__name__)

        if not response.is_success:
            return RejectedError(status_code=response.status_code, reason=_error_text(response))

        try:
            data = response.json()
        except ValueError:
            return RejectedError(status_code=response.status_code, reason="invalid JSON body")
        if not isinstance(data, dict) or data.get("success") is not True:
            return RejectedError(status_code=response.status_code, reason="success flag not set")

        processed = data.get("processed", len(records))
        coins_change = data.get("coinsChange", 0)
        total_coins = data.get("totalCoins")
        if not (_is_int(processed) and _is_int(coins_change)) or not (
            total_coins is None or _is_int(total_coins)
        ):
            return RejectedError(status_code=response.status_code, reason="malformed counters")

        return SyncOk(processed=processed, coins_change=coins_change, total_coins=total_coins)

    async def flush(self, uuid: str, buffer: HeartbeatBuffer) -> Optional[SyncResult]:
        """
        Send the whole buffer as one batch. Returns None when there was
        nothing to send. Only a SyncOk trims the buffer.
        """
        if not len(buffer):
            return None
        head = buffer.head
        batch = buffer.snapshot()
        result = await self.send_heartbeats(uuid, batch)

        if isinstance(result, SyncOk):
            buffer.drop_sent(len(batch), head=head)
            logger.info("Synced %d heartbeats", len(batch))
        elif isinstance(result, NetworkError):
            logger.warning("Heartbeat sync failed (%s); keeping %d for retry",
                           result.reason, len(buffer))
        else:
            logger.warning("Heartbeat sync rejected with %d (%s); keeping %d for retry",
                           result.status_code, result.reason, len(buffer))
        return result

    # ------------------------------------------------------------------
    # Session lifecycle (fire-and-forget)
    # ------------------------------------------------------------------

    async def notify_start(self, uuid: str, session_id: str, timestamp: float) -> bool:
        return await self._ping("/sessions/start", {
            "uuid": uuid,
            "sessionId": session_id,
            "timestamp": int(timestamp * 1000),
        })

    async def notify_stop(self, uuid: str, session_id: Optional[str]) -> bool:
        return await self._ping("/sessions/stop", {"uuid": uuid, "sessionId": session_id})

    async def fetch_stats(self, uuid: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self._client.get(f"/sessions/stats/{uuid}")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not fetch stats for %s: %s", uuid, e)
            return None

    async def _ping(self, path: str, body: Dict[str, Any]) -> bool:
        try:
            response = await self._client.post(path, json=body)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("API call %s failed: %s", path, e)
            return False


def _error_text(response: httpx.Response) -> str:
    try:
        detail = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(detail, dict):
        return str(detail.get("detail") or detail.get("error") or detail)
    return str(detail)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
