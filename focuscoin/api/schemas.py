"""
Pydantic schemas for the FocusCoin API. Wire names are camelCase to match
the browser extension; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Sessions ───────────────────────────────────────────────────────────────

class SessionStartIn(CamelModel):
    uuid: Optional[str] = None
    session_id: str
    timestamp: Optional[float] = None        # ms since epoch


class SessionStartOut(CamelModel):
    success: bool = True
    session_id: str
    user_id: int
    timestamp: float


class SessionStopIn(CamelModel):
    uuid: Optional[str] = None
    session_id: Optional[str] = None


class SessionStopOut(CamelModel):
    success: bool = True
    session_id: Optional[str]
    stopped_at: float


# ── Heartbeats ─────────────────────────────────────────────────────────────

class HeartbeatIn(CamelModel):
    timestamp: float = Field(..., description="ms since epoch")
    site: str = Field(..., min_length=1)
    site_type: Literal["productive", "distracting", "neutral"]
    action: Literal["visit", "focus", "distract"]
    coins_change: int = 0
    session_id: str
    tab_id: Optional[int] = None
    url: Optional[str] = None


class HeartbeatBatchIn(CamelModel):
    uuid: Optional[str] = None
    heartbeats: List[HeartbeatIn] = Field(default_factory=list)


class HeartbeatBatchOut(CamelModel):
    success: bool = True
    processed: int
    coins_change: int
    total_coins: int


# ── Stats ──────────────────────────────────────────────────────────────────

class UserStatsOut(CamelModel):
    total_coins: int
    current_streak: int
    total_focus_time: int
    settings: Dict[str, Any] = Field(default_factory=dict)


class StreakStatsOut(CamelModel):
    total_coins: int
    current_streak: int
    best_streak: int
    total_focus_time: int


class DayTotalsOut(CamelModel):
    total_focus_time: int
    coins_earned: int
    coins_spent: int
    productive_time: int
    distracting_time: int
    sessions_count: int


class SiteBreakdownOut(CamelModel):
    site: str
    time_spent: int
    coins_change: int
    type: str


class DailyStatsOut(CamelModel):
    date: str
    stats: DayTotalsOut
    site_breakdown: List[SiteBreakdownOut]


class TodayStatsOut(DailyStatsOut):
    user_stats: StreakStatsOut


class PeriodOut(CamelModel):
    start_date: str
    end_date: str


class HistorySummaryOut(CamelModel):
    total_days: int
    avg_focus_time: int
    total_coins_earned: int
    total_coins_spent: int
    active_days: int
    most_productive_site: Optional[str]
    longest_day_focus: int


class HistoryOut(CamelModel):
    period: PeriodOut
    summary: HistorySummaryOut
    daily_data: List[DailyStatsOut]
    user_stats: StreakStatsOut


# ── User settings ──────────────────────────────────────────────────────────

class SiteListsIn(CamelModel):
    productive_sites: List[str] = Field(max_length=200)
    distracting_sites: List[str] = Field(max_length=200)


class SiteListsOut(CamelModel):
    success: bool = True
    settings: Dict[str, Any]
