"""
Unit tests for HeartbeatStore, daily aggregation and streaks.

Uses a temp-file SQLite database per test.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from focuscoin.store.aggregation import (
    SECONDS_PER_HEARTBEAT,
    aggregate_daily,
    calculate_streak,
    history,
    longest_streak,
    refresh_user_stats,
)
from focuscoin.store.heartbeat_store import HeartbeatStore, StoredHeartbeat

TODAY = date(2024, 3, 15)


# ── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def store(tmp_path):
    """A fresh HeartbeatStore backed by a temp file."""
    return HeartbeatStore(tmp_path / "test.db")


def _ts(day: date, hour: int = 12) -> float:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc).timestamp()


def _hb(day: date, coins: int = 3, site: str = "github.com", site_type: str = "productive",
        session_id: str = "s-1", user_id: int = 1, hour: int = 12) -> StoredHeartbeat:
    return StoredHeartbeat(
        id=None,
        user_id=user_id,
        session_id=session_id,
        timestamp=_ts(day, hour),
        site=site,
        site_type=site_type,
        action="focus" if site_type == "productive" else "distract",
        coins_change=coins,
    )


# ── HeartbeatStore ──────────────────────────────────────────────────────────


def test_get_or_create_user_is_idempotent(store):
    a = store.get_or_create_user("u-1", {"productive_sites": ["github.com"]})
    b = store.get_or_create_user("u-1", {"productive_sites": ["arxiv.org"]})
    assert a.id == b.id
    assert b.settings == {"productive_sites": ["github.com"]}


def test_update_user_settings(store):
    user = store.get_or_create_user("u-1", {"productive_sites": ["github.com"]})
    store.update_user_settings(user.id, {"productive_sites": ["arxiv.org"]})
    assert store.get_user("u-1").settings == {"productive_sites": ["arxiv.org"]}


def test_unknown_user_is_none(store):
    assert store.get_user("missing") is None


def test_insert_accumulates_total_coins(store):
    user = store.get_or_create_user("u-1")
    assert store.insert_heartbeats(user.id, [_hb(TODAY, 3), _hb(TODAY, -4)]) == -1
    assert store.insert_heartbeats(user.id, [_hb(TODAY, 9)]) == 8
    assert store.get_user("u-1").total_coins == 8


def test_query_is_chronological_and_filtered(store):
    user = store.get_or_create_user("u-1")
    later = _hb(TODAY, hour=15, user_id=user.id)
    earlier = _hb(TODAY, hour=9, user_id=user.id)
    store.insert_heartbeats(user.id, [later, earlier])

    rows = store.query_heartbeats(user.id)
    assert [r.timestamp for r in rows] == [earlier.timestamp, later.timestamp]

    rows = store.query_heartbeats(user.id, since=_ts(TODAY, 10))
    assert len(rows) == 1


def test_heartbeats_are_per_user(store):
    a = store.get_or_create_user("a")
    b = store.get_or_create_user("b")
    store.insert_heartbeats(a.id, [_hb(TODAY, user_id=a.id)])
    assert store.query_heartbeats(b.id) == []


# ── aggregate_daily ─────────────────────────────────────────────────────────


def test_empty_input_has_no_days():
    assert aggregate_daily([]) == {}


def test_day_totals():
    day = aggregate_daily([
        _hb(TODAY, 3, session_id="a"),
        _hb(TODAY, 6, session_id="a"),
        _hb(TODAY, -4, "youtube.com", "distracting", session_id="b"),
    ])[TODAY.isoformat()]
    assert day.coins_earned == 9
    assert day.coins_spent == 4
    assert day.productive_time == 2 * SECONDS_PER_HEARTBEAT
    assert day.total_focus_time == 2 * SECONDS_PER_HEARTBEAT
    assert day.distracting_time == SECONDS_PER_HEARTBEAT
    assert day.sessions_count == 2


def test_site_breakdown():
    day = aggregate_daily([
        _hb(TODAY, 3),
        _hb(TODAY, 3),
        _hb(TODAY, -4, "reddit.com", "distracting"),
    ])[TODAY.isoformat()]
    by_site = {s.site: s for s in day.site_breakdown}
    assert by_site["github.com"].time_spent == 10
    assert by_site["github.com"].coins_change == 6
    assert by_site["reddit.com"].type == "distracting"


def test_heartbeats_split_by_utc_day():
    yesterday = TODAY - timedelta(days=1)
    days = aggregate_daily([_hb(yesterday, hour=23), _hb(TODAY, hour=0)])
    assert set(days) == {yesterday.isoformat(), TODAY.isoformat()}


# ── Streaks ─────────────────────────────────────────────────────────────────


def _days(*offsets: int):
    return aggregate_daily([_hb(TODAY - timedelta(days=o)) for o in offsets])


def test_streak_counts_back_from_today():
    assert calculate_streak(_days(0, 1, 2), today=TODAY) == 3


def test_streak_stops_at_gap():
    assert calculate_streak(_days(0, 1, 3, 4), today=TODAY) == 2


def test_no_focus_today_means_zero_streak():
    assert calculate_streak(_days(1, 2), today=TODAY) == 0


def test_distracting_only_day_breaks_streak():
    daily = aggregate_daily([
        _hb(TODAY),
        _hb(TODAY - timedelta(days=1), -4, "reddit.com", "distracting"),
        _hb(TODAY - timedelta(days=2)),
    ])
    assert calculate_streak(daily, today=TODAY) == 1


def test_longest_streak():
    assert longest_streak(_days(0, 3, 4, 5, 9)) == 3
    assert longest_streak({}) == 0


def test_refresh_user_stats_keeps_best(store):
    user = store.get_or_create_user("u-1")
    store.insert_heartbeats(user.id, [
        _hb(TODAY - timedelta(days=o), user_id=user.id) for o in (0, 5, 6, 7, 8)
    ])
    user = refresh_user_stats(store, user, today=TODAY)
    assert user.current_streak == 1
    assert user.best_streak == 4
    assert user.total_focus_time == 5 * SECONDS_PER_HEARTBEAT
    assert store.get_user("u-1").best_streak == 4


# ── history ─────────────────────────────────────────────────────────────────


def test_history_zero_fills_oldest_first():
    rows = history(_days(1), days=3, today=TODAY)
    assert [r.date for r in rows] == [
        (TODAY - timedelta(days=o)).isoformat() for o in (3, 2, 1, 0)
    ]
    assert rows[2].total_focus_time == SECONDS_PER_HEARTBEAT
    assert rows[0].total_focus_time == 0
