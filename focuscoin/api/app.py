"""
FastAPI application — FocusCoin ingestion and stats API.
Runs on http://127.0.0.1:3000 by default.

The heartbeat store lives on app.state so that each call to create_app()
produces a fully independent instance with no shared module-level globals.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..store.heartbeat_store import HeartbeatStore


# ---------------------------------------------------------------------------
# Lifespan: opens the store for this app instance
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    db_path = Path(app.state.db_path or config.data_dir / config.heartbeat_db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    app.state.store = HeartbeatStore(db_path)
    yield


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(db_path: Optional[Path] = None) -> FastAPI:
    app = FastAPI(
        title="FocusCoin",
        description="Heartbeat ingestion, daily stats and streaks for the FocusCoin agent",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db_path = db_path

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"(chrome|moz)-extension://.*|http://localhost(:\d+)?",
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import blocked, sessions, settings, stats, user

    app.include_router(sessions.router)
    app.include_router(stats.router)
    app.include_router(user.router)
    app.include_router(settings.router)
    app.include_router(blocked.router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
