"""
Accrual Engine — owns the focus session and turns time spent on classified
sites into coin changes and heartbeats.

States:
  IDLE        — no session; ticks and tab changes are ignored
  MONITORING  — a session is active; every tick / tab change runs evaluate()

The engine registers no timers of its own. A driver (AgentRunner, or a test)
calls on_tick() / on_tab_changed() and may pass ``now`` explicitly so the
elapsed-tick arithmetic is deterministic.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid as uuidlib
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from ..config import config
from .blocker import BlockAction
from .buffer import HeartbeatBuffer, HeartbeatRecord
from .classifier import SiteClassifier, SiteType, normalize_hostname
from .ledger import CoinLedger
from .state_store import AgentStateStore
from .sync_client import SyncClient, SyncResult
from .tabs import Tab, TabController

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    MONITORING = "monitoring"


class Outcome(str, Enum):
    INACTIVE = "inactive"        # no session
    NO_TAB = "no_tab"            # no readable active tab
    NEUTRAL = "neutral"          # neutral site, nothing recorded
    TOO_SOON = "too_soon"        # less than one tick since last evaluation
    ACCRUED = "accrued"          # ledger updated, heartbeat buffered
    BLOCKED = "blocked"          # balance exhausted on a distracting site


@dataclass
class Session:
    session_id: str
    started_at: float
    active: bool = True


@dataclass
class Evaluation:
    outcome: Outcome
    site: str = ""
    site_type: Optional[SiteType] = None
    coins_change: int = 0
    balance: int = 0
    heartbeat: Optional[HeartbeatRecord] = None


class AccrualEngine:
    """
    Usage:
        engine = AccrualEngine(tabs, SyncClient(), AgentStateStore())
        await engine.start_session()
        await engine.on_tick()
        await engine.stop_session()
    """

    def __init__(
        self,
        tabs: TabController,
        sync: SyncClient,
        store: AgentStateStore,
        classifier: Optional[SiteClassifier] = None,
        blocker: Optional[BlockAction] = None,
        buffer: Optional[HeartbeatBuffer] = None,
        tick_interval_s: Optional[float] = None,
        productive_reward: Optional[int] = None,
        distracting_penalty: Optional[int] = None,
    ):
        self._tabs = tabs
        self._sync = sync
        self.store = store
        self.classifier = classifier or SiteClassifier()
        self.blocker = blocker or BlockAction(tabs)
        self.buffer = buffer or HeartbeatBuffer(
            flush_threshold=config.max_buffer_size, capacity=config.buffer_capacity
        )
        self.tick_interval_s = (
            config.tick_interval_s if tick_interval_s is None else tick_interval_s
        )
        if self.tick_interval_s <= 0:
            raise ValueError(f"tick_interval_s must be positive, got {self.tick_interval_s}")
        self.productive_reward = (
            config.productive_reward if productive_reward is None else productive_reward
        )
        self.distracting_penalty = (
            config.distracting_penalty if distracting_penalty is None else distracting_penalty
        )

        self.uuid = store.ensure_uuid()
        self.ledger = CoinLedger(
            balance=store.get("focus_coins", 0) or 0,
            earned_today=store.get("today_coins", 0) or 0,
        )
        self.session: Optional[Session] = None
        self.last_evaluation_time: float = time.time()

        self._flush_lock = asyncio.Lock()
        self._flush_task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[[Evaluation], None]] = []

    @property
    def state(self) -> EngineState:
        return EngineState.MONITORING if self.session else EngineState.IDLE

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start_session(self, now: Optional[float] = None) -> Session:
        if self.session is not None:
            return self.session
        now = time.time() if now is None else now
        self.session = Session(session_id=str(uuidlib.uuid4()), started_at=now)
        self.last_evaluation_time = now
        self.store.set(session_active=True, session_start_time=now)

        await self._sync.notify_start(self.uuid, self.session.session_id, now)
        logger.info("Focus session started: %s", self.session.session_id)
        return self.session

    async def stop_session(self, now: Optional[float] = None) -> Optional[Session]:
        session = self.session
        if session is None:
            return None
        session.active = False
        self.session = None

        # Best-effort final sync; whatever fails stays buffered
        await self.wait_for_sync()
        try:
            await self.flush()
        except Exception:
            logger.exception("Final heartbeat sync failed")

        await self._sync.notify_stop(self.uuid, session.session_id)
        self.store.set(session_active=False, session_start_time=None)

        stats = await self._sync.fetch_stats(self.uuid)
        if stats and "currentStreak" in stats:
            self.store.set(focus_streak=int(stats["currentStreak"]))

        logger.info("Focus session stopped: %s", session.session_id)
        return session

    # ------------------------------------------------------------------
    # Driver entry points
    # ------------------------------------------------------------------

    async def on_tick(self, now: Optional[float] = None) -> Evaluation:
        return await self.evaluate(now)

    async def on_tab_changed(self, now: Optional[float] = None) -> Evaluation:
        """A new tab or URL restarts the interval; time on the old tab is dropped."""
        if self.session is None:
            return Evaluation(Outcome.INACTIVE, balance=self.ledger.balance)
        now = time.time() if now is None else now
        self.last_evaluation_time = now
        return await self.evaluate(now)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(self, now: Optional[float] = None) -> Evaluation:
        session = self.session
        if session is None:
            return Evaluation(Outcome.INACTIVE, balance=self.ledger.balance)
        now = time.time() if now is None else now

        tab = await self._read_active_tab()
        if self.session is not session:
            # the session ended or was replaced while the tab was being read
            return Evaluation(Outcome.INACTIVE, balance=self.ledger.balance)
        if tab is None or not tab.url:
            return Evaluation(Outcome.NO_TAB, balance=self.ledger.balance)

        site = normalize_hostname(tab.url)
        if not site:
            return Evaluation(Outcome.NO_TAB, balance=self.ledger.balance)

        site_type = self.classifier.classify(site)
        if site_type == SiteType.NEUTRAL:
            # last_evaluation_time is left alone on purpose: see DESIGN.md
            return Evaluation(Outcome.NEUTRAL, site, site_type, balance=self.ledger.balance)

        elapsed_ticks = int((now - self.last_evaluation_time) // self.tick_interval_s)
        if elapsed_ticks < 1:
            return Evaluation(Outcome.TOO_SOON, site, site_type, balance=self.ledger.balance)

        if site_type == SiteType.PRODUCTIVE:
            coins_change = self.productive_reward * elapsed_ticks
        else:
            coins_change = -self.distracting_penalty * elapsed_ticks

        update = self.ledger.apply(coins_change, site_type)
        self._persist_ledger()

        if update.clamped:
            await self.blocker.block(tab, site)
            return Evaluation(
                Outcome.BLOCKED, site, site_type,
                coins_change=0, balance=update.new_balance,
            )

        record = HeartbeatRecord(
            timestamp=now,
            site=site,
            site_type=site_type,
            coins_change=coins_change,
            session_id=session.session_id,
            tab_id=tab.tab_id,
            url=tab.url,
        )
        self.buffer.append(record)
        self.last_evaluation_time = now

        evaluation = Evaluation(
            Outcome.ACCRUED, site, site_type,
            coins_change=coins_change, balance=update.new_balance, heartbeat=record,
        )
        self._notify(evaluation)

        if self.buffer.is_full():
            self._request_flush()
        return evaluation

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def flush(self) -> Optional[SyncResult]:
        """Send everything buffered. Concurrent callers are serialised."""
        async with self._flush_lock:
            return await self._sync.flush(self.uuid, self.buffer)

    async def wait_for_sync(self) -> None:
        """Await a flush scheduled by a full buffer, if one is running. Never raises."""
        task = self._flush_task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _request_flush(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            return
        self._flush_task = asyncio.create_task(self.flush())
        self._flush_task.add_done_callback(_log_flush_failure)

    # ------------------------------------------------------------------
    # Daily roll-over
    # ------------------------------------------------------------------

    def roll_over_day(self, today: Optional[date] = None) -> bool:
        if self.store.roll_over_day(today):
            self.ledger.reset_day()
            return True
        return False

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def register_listener(self, fn: Callable[[Evaluation], None]) -> None:
        """Register a callback(evaluation) called after every accrued tick."""
        self._listeners.append(fn)

    def _notify(self, evaluation: Evaluation) -> None:
        for listener in self._listeners:
            try:
                listener(evaluation)
            except Exception:
                logger.exception("Coin listener failed")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _read_active_tab(self) -> Optional[Tab]:
        try:
            return await self._tabs.active_tab()
        except Exception as e:
            logger.warning("Could not read active tab: %s", e)
            return None

    def _persist_ledger(self) -> None:
        self.store.set(
            focus_coins=self.ledger.balance,
            today_coins=self.ledger.earned_today,
        )


def _log_flush_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background heartbeat sync crashed", exc_info=exc)
