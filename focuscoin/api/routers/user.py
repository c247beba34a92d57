"""
/api/user — per-user settings stored with the user record.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import SiteListsIn, SiteListsOut
from ...settings import clean_sites
from ...store.heartbeat_store import HeartbeatStore, UserRecord

router = APIRouter(prefix="/api/user", tags=["user"])

MAX_SITES = 50


def _get_store(request: Request) -> HeartbeatStore:
    return request.app.state.store


def _get_user(uuid: str, store=Depends(_get_store)) -> UserRecord:
    user = store.get_user(uuid)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/settings/sites/{uuid}", response_model=SiteListsOut)
def update_site_lists(
    body: SiteListsIn, user=Depends(_get_user), store=Depends(_get_store)
):
    """Replace both site lists. Entries are cleaned and each list keeps its first 50."""
    settings = {
        **user.settings,
        "productive_sites": clean_sites(body.productive_sites)[:MAX_SITES],
        "distracting_sites": clean_sites(body.distracting_sites)[:MAX_SITES],
    }
    store.update_user_settings(user.id, settings)
    return SiteListsOut(settings=settings)
