"""
Agent Runner — the timer side of the agent. Owns the tick loop (only while a
session is active) and the wall-clock sync loop, and forwards tab changes.

    runner = AgentRunner(engine)
    await runner.start()            # sync loop; resumes a persisted session
    await runner.start_session()
    ...
    await runner.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..config import config
from .engine import AccrualEngine, Evaluation

logger = logging.getLogger(__name__)


class AgentRunner:

    def __init__(
        self,
        engine: AccrualEngine,
        resume: bool = True,
        sync_interval_s: Optional[float] = None,
    ):
        self.engine = engine
        self.resume = resume
        self.sync_interval_s = sync_interval_s or config.sync_interval_s
        self._tick_task: Optional[asyncio.Task] = None
        self._sync_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self.engine.roll_over_day()
        self._sync_task = asyncio.create_task(self._sync_loop())
        if self.resume and self.engine.store.get("session_active"):
            logger.info("Resuming focus session from previous run")
            await self.start_session()
        logger.info("Agent running with uuid %s", self.engine.uuid)

    async def stop(self) -> None:
        """Tear down: stop the session (final flush) and cancel the loops."""
        if self.engine.session is not None:
            await self.stop_session()
        await _cancel(self._sync_task)
        self._sync_task = None

    async def start_session(self) -> None:
        await self.engine.start_session()
        await _cancel(self._tick_task)
        await self.engine.on_tick()
        self._tick_task = asyncio.create_task(self._tick_loop())

    async def stop_session(self) -> None:
        await _cancel(self._tick_task)
        self._tick_task = None
        await self.engine.stop_session()

    async def tab_changed(self) -> Evaluation:
        return await self.engine.on_tab_changed()

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.engine.tick_interval_s)
            try:
                self.engine.roll_over_day()
                await self.engine.on_tick()
            except Exception:
                logger.exception("Error updating coins")

    async def _sync_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sync_interval_s)
            try:
                await self.engine.flush()
            except Exception:
                logger.exception("Periodic sync failed")


async def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
