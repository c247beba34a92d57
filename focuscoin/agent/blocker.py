"""
Block Action — sends a tab to the interstitial page when the coin balance
cannot cover a distracting site.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from ..config import config
from .tabs import Tab, TabController

logger = logging.getLogger(__name__)


class BlockAction:

    def __init__(self, tabs: TabController, interstitial_url: Optional[str] = None):
        self._tabs = tabs
        self.interstitial_url = interstitial_url or config.interstitial_url

    def blocking_url(self, domain: str) -> str:
        return f"{self.interstitial_url}?{urlencode({'site': domain})}"

    async def block(self, tab: Tab, domain: str) -> bool:
        """Navigate *tab* to the interstitial. Failures are logged, never raised."""
        try:
            await self._tabs.navigate(tab.tab_id, self.blocking_url(domain))
        except Exception as e:
            logger.error("Error blocking %s in tab %s: %s", domain, tab.tab_id, e)
            return False
        logger.info("Blocked %s", domain)
        return True
