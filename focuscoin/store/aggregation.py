"""
Heartbeat aggregation — per-day statistics and focus streaks, computed at
read time from the stored heartbeats.

Each heartbeat stands for one tick of browsing (SECONDS_PER_HEARTBEAT).
Days are calendar days in UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from .heartbeat_store import HeartbeatStore, StoredHeartbeat, UserRecord

SECONDS_PER_HEARTBEAT = 5


@dataclass
class SiteBreakdown:
    site: str
    type: str
    time_spent: int = 0
    coins_change: int = 0


@dataclass
class DailyStats:
    """Aggregate statistics for a single calendar day (UTC)."""
    date: str                    # "YYYY-MM-DD"
    total_focus_time: int = 0    # seconds on productive sites
    coins_earned: int = 0
    coins_spent: int = 0
    productive_time: int = 0
    distracting_time: int = 0
    sessions_count: int = 0
    site_breakdown: List[SiteBreakdown] = field(default_factory=list)


def _day_of(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


def utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


def aggregate_daily(heartbeats: Iterable[StoredHeartbeat]) -> Dict[str, DailyStats]:
    """Group heartbeats by UTC day. Input order is kept inside each breakdown."""
    days: Dict[str, DailyStats] = {}
    sessions: Dict[str, set] = {}
    sites: Dict[str, Dict[str, SiteBreakdown]] = {}

    for hb in heartbeats:
        key = _day_of(hb.timestamp)
        day = days.setdefault(key, DailyStats(date=key))
        sessions.setdefault(key, set()).add(hb.session_id)

        if hb.coins_change > 0:
            day.coins_earned += hb.coins_change
        elif hb.coins_change < 0:
            day.coins_spent += -hb.coins_change

        if hb.site_type == "productive":
            day.productive_time += SECONDS_PER_HEARTBEAT
            day.total_focus_time += SECONDS_PER_HEARTBEAT
        elif hb.site_type == "distracting":
            day.distracting_time += SECONDS_PER_HEARTBEAT

        site = sites.setdefault(key, {}).get(hb.site)
        if site is None:
            site = SiteBreakdown(site=hb.site, type=hb.site_type)
            sites[key][hb.site] = site
        site.time_spent += SECONDS_PER_HEARTBEAT
        site.coins_change += hb.coins_change

    for key, day in days.items():
        day.sessions_count = len(sessions[key])
        day.site_breakdown = list(sites[key].values())
    return days


def calculate_streak(daily: Dict[str, DailyStats], today: Optional[date] = None) -> int:
    """
    Consecutive days with focus time, counting back from *today*. A day
    without focus time today means a streak of 0.
    """
    today = today or utc_today()
    focus_days = {k for k, d in daily.items() if d.total_focus_time > 0}
    streak = 0
    cursor = today
    while cursor.isoformat() in focus_days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(daily: Dict[str, DailyStats]) -> int:
    focus_days = sorted(
        date.fromisoformat(k) for k, d in daily.items() if d.total_focus_time > 0
    )
    best = run = 0
    prev: Optional[date] = None
    for d in focus_days:
        run = run + 1 if prev is not None and d - prev == timedelta(days=1) else 1
        best = max(best, run)
        prev = d
    return best


def history(
    daily: Dict[str, DailyStats], days: int, today: Optional[date] = None
) -> List[DailyStats]:
    """The last *days* days up to and including today, zero-filled, oldest first."""
    today = today or utc_today()
    start = today - timedelta(days=days)
    result = []
    cursor = start
    while cursor <= today:
        key = cursor.isoformat()
        result.append(daily.get(key) or DailyStats(date=key))
        cursor += timedelta(days=1)
    return result


def refresh_user_stats(
    store: HeartbeatStore, user: UserRecord, today: Optional[date] = None
) -> UserRecord:
    """Recompute focus time and streaks for *user* and persist them."""
    daily = aggregate_daily(store.query_heartbeats(user.id))
    total_focus = sum(d.total_focus_time for d in daily.values())
    current = calculate_streak(daily, today)
    best = max(current, longest_streak(daily), user.best_streak)
    store.update_user_stats(user.id, total_focus, current, best)
    user.total_focus_time = total_focus
    user.current_streak = current
    user.best_streak = best
    return user
