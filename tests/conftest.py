"""
Shared pytest fixtures and configuration.
"""

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from focuscoin.agent.engine import AccrualEngine
from focuscoin.agent.state_store import AgentStateStore
from focuscoin.agent.sync_client import SyncClient
from focuscoin.agent.tabs import ScriptedTabs
from focuscoin.api.app import create_app


class FakeApi:
    """
    httpx.MockTransport handler standing in for the ingestion API.
    Set ``fail_heartbeats`` to an int status code, or to "network", to make
    the heartbeat endpoint fail.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.fail_heartbeats = None
        self.total_coins = 0

    def calls(self, path: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/sessions/heartbeats":
            if self.fail_heartbeats == "network":
                raise httpx.ConnectError("connection refused", request=request)
            if self.fail_heartbeats:
                return httpx.Response(self.fail_heartbeats, json={"error": "boom"})
            body = json.loads(request.content)
            change = sum(h["coinsChange"] for h in body["heartbeats"])
            self.total_coins += change
            return httpx.Response(200, json={
                "success": True,
                "processed": len(body["heartbeats"]),
                "coinsChange": change,
                "totalCoins": self.total_coins,
            })
        if path.startswith("/api/sessions/stats/"):
            return httpx.Response(200, json={"totalCoins": self.total_coins, "currentStreak": 2})
        return httpx.Response(200, json={"success": True})


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest_asyncio.fixture
async def sync_client(fake_api):
    client = SyncClient(api_base="http://test/api", transport=httpx.MockTransport(fake_api))
    yield client
    await client.aclose()


@pytest.fixture
def state_store(tmp_path):
    return AgentStateStore(tmp_path / "agent_state.json")


@pytest.fixture
def tabs():
    return ScriptedTabs()


@pytest.fixture
def engine(tabs, sync_client, state_store):
    return AccrualEngine(
        tabs,
        sync_client,
        state_store,
        tick_interval_s=5.0,
        productive_reward=3,
        distracting_penalty=4,
    )


@pytest.fixture
def app(tmp_path):
    """Create a fresh app instance backed by a temp database."""
    return create_app(db_path=tmp_path / "focuscoin.db")


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
