"""
/settings — the local site lists the agent classifies with. They are also
the starting lists for users the API has not seen before; per-user lists
are changed through /api/user/settings/sites/{uuid}.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    productive_sites:  Optional[List[str]] = Field(None, max_length=200)
    distracting_sites: Optional[List[str]] = Field(None, max_length=200)


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """Apply a partial update; unknown keys are ignored. Persists to data/settings.json."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    return {"settings": update_settings(data)}
