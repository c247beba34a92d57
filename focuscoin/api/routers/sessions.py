"""
/api/sessions — session lifecycle pings and batched heartbeat ingestion from
the browser agent.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import (
    HeartbeatBatchIn,
    HeartbeatBatchOut,
    SessionStartIn,
    SessionStartOut,
    SessionStopIn,
    SessionStopOut,
    UserStatsOut,
)
from ...settings import get_settings
from ...store.aggregation import refresh_user_stats
from ...store.heartbeat_store import HeartbeatStore, StoredHeartbeat, UserRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _get_store(request: Request) -> HeartbeatStore:
    return request.app.state.store


def _user_for(uuid: str | None, store: HeartbeatStore) -> UserRecord:
    """Look up the user by anonymous uuid, creating it on first contact."""
    if not uuid:
        raise HTTPException(status_code=400, detail="UUID required")
    s = get_settings()
    return store.get_or_create_user(
        uuid,
        default_settings={
            "productive_sites": s["productive_sites"],
            "distracting_sites": s["distracting_sites"],
        },
    )


@router.post("/start", response_model=SessionStartOut)
def start_session(req: SessionStartIn, store=Depends(_get_store)):
    user = _user_for(req.uuid, store)
    store.touch_user(user.id)
    return SessionStartOut(
        session_id=req.session_id,
        user_id=user.id,
        timestamp=req.timestamp if req.timestamp is not None else time.time() * 1000,
    )


@router.post("/stop", response_model=SessionStopOut)
def stop_session(req: SessionStopIn, store=Depends(_get_store)):
    _user_for(req.uuid, store)
    return SessionStopOut(session_id=req.session_id, stopped_at=time.time() * 1000)


@router.post("/heartbeats", response_model=HeartbeatBatchOut)
def ingest_heartbeats(batch: HeartbeatBatchIn, store=Depends(_get_store)):
    """Bulk-insert a batch and credit its summed coin change to the user."""
    user = _user_for(batch.uuid, store)
    if not batch.heartbeats:
        raise HTTPException(status_code=400, detail="Heartbeats array required")

    rows = [
        StoredHeartbeat(
            id=None,
            user_id=user.id,
            session_id=hb.session_id,
            timestamp=hb.timestamp / 1000.0,
            site=hb.site,
            site_type=hb.site_type,
            action=hb.action,
            coins_change=hb.coins_change,
            tab_id=hb.tab_id,
            url=hb.url,
        )
        for hb in batch.heartbeats
    ]
    total = store.insert_heartbeats(user.id, rows)
    coins_change = sum(r.coins_change for r in rows)
    logger.info("Stored %d heartbeats for user %s", len(rows), user.uuid)

    return HeartbeatBatchOut(
        processed=len(rows),
        coins_change=coins_change,
        total_coins=total,
    )


@router.get("/stats/{uuid}", response_model=UserStatsOut)
def user_stats(uuid: str, store=Depends(_get_store)):
    user = store.get_user(uuid)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    user = refresh_user_stats(store, user)
    return UserStatsOut(
        total_coins=user.total_coins,
        current_streak=user.current_streak,
        total_focus_time=user.total_focus_time,
        settings=user.settings,
    )
