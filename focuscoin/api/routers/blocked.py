"""
/blocked — the interstitial page a tab is sent to when the coin balance
cannot cover a distracting site. Reloads itself so the tab can be retried
once coins are earned again.
"""

from __future__ import annotations

import html

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["blocked"])

RELOAD_SECONDS = 30

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta http-equiv="refresh" content="{reload}">
  <title>Site blocked</title>
</head>
<body>
  <h1>Out of focus coins</h1>
  <p><strong id="blockedSite">{site}</strong> is blocked until you earn more coins.</p>
  <p>Spend some time on a productive site and come back.</p>
  <a class="btn" href="javascript:window.close()">Back to work</a>
</body>
</html>
"""


@router.get("/blocked", response_class=HTMLResponse)
def blocked_page(site: str = Query(default="")):
    return HTMLResponse(_PAGE.format(reload=RELOAD_SECONDS, site=html.escape(site or "this site")))
