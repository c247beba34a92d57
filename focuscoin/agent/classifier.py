"""
Site Classifier — maps a hostname to productive / distracting / neutral
given the user's two ordered site lists.

Contexts:
  PRODUCTIVE    — hostname contains an entry of the productive list
  DISTRACTING   — hostname contains an entry of the distracting list
  NEUTRAL       — neither (the engine ignores neutral time)
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from ..settings import get_settings


class SiteType(str, Enum):
    PRODUCTIVE = "productive"
    DISTRACTING = "distracting"
    NEUTRAL = "neutral"


def normalize_hostname(url_or_host: str) -> str:
    """
    Reduce a URL or bare host to a lowercase hostname without scheme,
    path, port or a leading ``www.``.
    """
    value = (url_or_host or "").strip().lower()
    if "://" not in value:
        value = "//" + value
    try:
        host = urlsplit(value).hostname or ""
    except ValueError:
        host = ""
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def _matches(hostname: str, sites: Iterable[str]) -> bool:
    return any(site and site in hostname for site in sites)


def classify(
    hostname: str,
    productive_sites: Sequence[str],
    distracting_sites: Sequence[str],
) -> SiteType:
    """Substring match, productive list first. Never raises."""
    host = normalize_hostname(hostname)
    if _matches(host, productive_sites):
        return SiteType.PRODUCTIVE
    if _matches(host, distracting_sites):
        return SiteType.DISTRACTING
    return SiteType.NEUTRAL


class SiteClassifier:
    """
    Binds the two site lists. Lists left as None follow the user settings, so
    a saved change applies to the next classification.
    """

    def __init__(
        self,
        productive_sites: Optional[Sequence[str]] = None,
        distracting_sites: Optional[Sequence[str]] = None,
    ):
        self._productive = None if productive_sites is None else list(productive_sites)
        self._distracting = None if distracting_sites is None else list(distracting_sites)

    @property
    def productive_sites(self) -> List[str]:
        if self._productive is not None:
            return self._productive
        return get_settings()["productive_sites"]

    @property
    def distracting_sites(self) -> List[str]:
        if self._distracting is not None:
            return self._distracting
        return get_settings()["distracting_sites"]

    def classify(self, hostname: str) -> SiteType:
        return classify(hostname, self.productive_sites, self.distracting_sites)
