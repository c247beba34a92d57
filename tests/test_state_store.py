"""Tests for AgentStateStore."""

import json
from datetime import date

import pytest

from focuscoin.agent.state_store import AgentStateStore
from focuscoin.config import config


def test_defaults(state_store):
    snap = state_store.snapshot()
    assert snap["focus_coins"] == config.initial_coins
    assert snap["today_coins"] == 0
    assert snap["session_active"] is False
    assert snap["focus_uuid"] is None


def test_set_persists(tmp_path):
    path = tmp_path / "state.json"
    AgentStateStore(path).set(focus_coins=42, session_active=True)
    reloaded = AgentStateStore(path)
    assert reloaded.get("focus_coins") == 42
    assert reloaded.get("session_active") is True


def test_unknown_key_rejected(state_store):
    with pytest.raises(KeyError):
        state_store.set(coins=1)


def test_uuid_is_stable(tmp_path):
    path = tmp_path / "state.json"
    first = AgentStateStore(path).ensure_uuid()
    assert first
    assert AgentStateStore(path).ensure_uuid() == first


def test_roll_over_zeroes_today_coins(state_store):
    state_store.set(today_coins=30, focus_coins=50, last_active_date="2024-03-14")
    assert state_store.roll_over_day(date(2024, 3, 15)) is True
    assert state_store.get("today_coins") == 0
    assert state_store.get("focus_coins") == 50
    assert state_store.get("last_active_date") == "2024-03-15"
    assert state_store.roll_over_day(date(2024, 3, 15)) is False


def test_malformed_file_uses_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{broken")
    store = AgentStateStore(path)
    assert store.get("focus_coins") == config.initial_coins


def test_unknown_saved_keys_are_dropped(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"focus_coins": 7, "legacy": "x"}))
    store = AgentStateStore(path)
    assert store.get("focus_coins") == 7
    assert "legacy" not in store.snapshot()
