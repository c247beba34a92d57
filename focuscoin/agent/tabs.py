"""
Browser tab access — the seam between the accrual engine and whatever hosts
it (a browser bridge, the simulator, tests).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol


@dataclass
class Tab:
    tab_id: int
    url: str


class TabController(Protocol):
    async def active_tab(self) -> Optional[Tab]:
        """Return the focused tab of the current window, or None."""
        ...

    async def navigate(self, tab_id: int, url: str) -> None:
        ...


class ScriptedTabs:
    """
    In-memory TabController. ``open()`` focuses a tab; ``navigate()`` records
    the redirect so callers can see where the tab was sent.
    """

    def __init__(self):
        self._tabs: Dict[int, Tab] = {}
        self._active: Optional[int] = None
        self.navigations: List[tuple[int, str]] = []

    def open(self, url: str, tab_id: Optional[int] = None) -> Tab:
        if tab_id is None:
            tab_id = max(self._tabs, default=0) + 1
        tab = Tab(tab_id=tab_id, url=url)
        self._tabs[tab_id] = tab
        self._active = tab_id
        return tab

    def close_all(self) -> None:
        self._tabs.clear()
        self._active = None

    async def active_tab(self) -> Optional[Tab]:
        if self._active is None:
            return None
        return self._tabs.get(self._active)

    async def navigate(self, tab_id: int, url: str) -> None:
        if tab_id not in self._tabs:
            raise LookupError(f"No tab with id {tab_id}")
        self._tabs[tab_id].url = url
        self.navigations.append((tab_id, url))
