"""
User-tunable runtime settings — persisted to data/settings.json.

Import get_settings() anywhere to read current values.
Import update_settings(patch) to mutate and save.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable

from .config import config

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://")
_WWW = re.compile(r"^www\.")

DEFAULTS: dict[str, Any] = {
    "productive_sites": [
        "github.com", "stackoverflow.com", "wikipedia.org", "leetcode.com",
        "coursera.org", "udemy.com", "edx.org", "khanacademy.org",
        "developer.mozilla.org", "w3schools.com", "freecodecamp.org",
    ],
    "distracting_sites": [
        "youtube.com", "instagram.com", "twitter.com", "facebook.com",
        "reddit.com", "tiktok.com", "netflix.com", "twitch.tv",
        "discord.com", "whatsapp.com",
    ],
}

_current: dict[str, Any] = {}


def clean_site(entry: Any) -> str:
    """Reduce a site entry to a bare host: no scheme, leading www. or path."""
    site = str(entry).strip().lower()
    site = _SCHEME.sub("", site)
    site = _WWW.sub("", site)
    return site.split("/", 1)[0]


def clean_sites(entries: Iterable[Any]) -> list[str]:
    cleaned = (clean_site(e) for e in entries)
    return [s for s in cleaned if s]


def _coerce(key: str, value: Any) -> Any:
    if isinstance(DEFAULTS[key], list):
        return clean_sites(value)
    return type(DEFAULTS[key])(value)


def _load() -> None:
    global _current
    _current = {k: _copy(v) for k, v in DEFAULTS.items()}
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
            for k, v in saved.items():
                if k in DEFAULTS:
                    _current[k] = _coerce(k, v)
        except Exception:
            logger.warning("Malformed settings file %s, using defaults", _FILE)


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return {k: _copy(v) for k, v in _current.items()}


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = _coerce(k, v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return get_settings()


# Eagerly load on import
_load()
