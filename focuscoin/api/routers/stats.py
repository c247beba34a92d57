"""
/api/stats — per-day statistics and streaks, aggregated from stored heartbeats.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...api.schemas import (
    DailyStatsOut,
    DayTotalsOut,
    HistoryOut,
    HistorySummaryOut,
    PeriodOut,
    SiteBreakdownOut,
    StreakStatsOut,
    TodayStatsOut,
)
from ...store.aggregation import (
    DailyStats,
    aggregate_daily,
    history,
    refresh_user_stats,
    utc_today,
)
from ...store.heartbeat_store import HeartbeatStore, UserRecord

router = APIRouter(prefix="/api/stats", tags=["stats"])


def _get_store(request: Request) -> HeartbeatStore:
    return request.app.state.store


def _get_user(uuid: str, store=Depends(_get_store)) -> UserRecord:
    user = store.get_user(uuid)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _day_out(day: DailyStats) -> DailyStatsOut:
    return DailyStatsOut(
        date=day.date,
        stats=DayTotalsOut(
            total_focus_time=day.total_focus_time,
            coins_earned=day.coins_earned,
            coins_spent=day.coins_spent,
            productive_time=day.productive_time,
            distracting_time=day.distracting_time,
            sessions_count=day.sessions_count,
        ),
        site_breakdown=[
            SiteBreakdownOut(
                site=s.site, time_spent=s.time_spent, coins_change=s.coins_change, type=s.type
            )
            for s in day.site_breakdown
        ],
    )


def _streaks_out(user: UserRecord) -> StreakStatsOut:
    return StreakStatsOut(
        total_coins=user.total_coins,
        current_streak=user.current_streak,
        best_streak=user.best_streak,
        total_focus_time=user.total_focus_time,
    )


def _most_productive_site(days: List[DailyStats]) -> str | None:
    totals: dict[str, int] = {}
    for day in days:
        for s in day.site_breakdown:
            if s.type == "productive":
                totals[s.site] = totals.get(s.site, 0) + s.time_spent
    if not totals:
        return None
    return max(totals, key=lambda k: totals[k])


@router.get("/today/{uuid}", response_model=TodayStatsOut)
def today_stats(user=Depends(_get_user), store=Depends(_get_store)):
    today = utc_today()
    daily = aggregate_daily(store.query_heartbeats(user.id))
    user = refresh_user_stats(store, user, today)
    day = history(daily, days=0, today=today)[0]
    out = _day_out(day)
    return TodayStatsOut(
        date=out.date,
        stats=out.stats,
        site_breakdown=out.site_breakdown,
        user_stats=_streaks_out(user),
    )


@router.get("/history/{uuid}", response_model=HistoryOut)
def history_stats(
    days: int = Query(default=7, ge=1, le=365),
    user=Depends(_get_user),
    store=Depends(_get_store),
):
    """
    Daily stats for the last *days* days (zero-filled) plus a summary.
    Averages are taken over *days*.
    """
    today = utc_today()
    daily = aggregate_daily(store.query_heartbeats(user.id))
    user = refresh_user_stats(store, user, today)
    rows = history(daily, days=days, today=today)

    summary = HistorySummaryOut(
        total_days=days,
        avg_focus_time=round(sum(d.total_focus_time for d in rows) / days),
        total_coins_earned=sum(d.coins_earned for d in rows),
        total_coins_spent=sum(d.coins_spent for d in rows),
        active_days=sum(1 for d in rows if d.total_focus_time > 0),
        most_productive_site=_most_productive_site(rows),
        longest_day_focus=max(d.total_focus_time for d in rows),
    )
    return HistoryOut(
        period=PeriodOut(start_date=rows[0].date, end_date=rows[-1].date),
        summary=summary,
        daily_data=[_day_out(d) for d in rows],
        user_stats=_streaks_out(user),
    )
