"""
Browsing Simulator — drives an in-process FocusCoin agent through scripted
browsing so you can watch coins accrue, a site get blocked and heartbeats
reach the API, without a browser extension.

Usage:
    # Make sure the API is running first:
    #   python -m focuscoin.main
    # Then in a separate terminal:
    python scripts/simulate.py                     # default: cycle all scenarios
    python scripts/simulate.py --scenario doomscroll
    python scripts/simulate.py --realtime          # sleep between ticks
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import Iterator

from focuscoin.agent.engine import AccrualEngine, Outcome
from focuscoin.agent.state_store import AgentStateStore
from focuscoin.agent.sync_client import SyncClient
from focuscoin.agent.tabs import ScriptedTabs
from focuscoin.config import config


# ---------------------------------------------------------------------------
# Scenario generators, each yields (description, url, ticks on that url)
# ---------------------------------------------------------------------------

def scenario_deep_focus() -> Iterator[tuple[str, str, int]]:
    """A long stretch of documentation and code review."""
    yield "Reading docs", "https://developer.mozilla.org/en-US/docs/Web", 6
    yield "Reviewing a PR", "https://github.com/org/repo/pull/42", 8
    yield "Looking something up", "https://stackoverflow.com/questions/1", 4


def scenario_doomscroll() -> Iterator[tuple[str, str, int]]:
    """Distracting sites until the balance runs out and the tab is blocked."""
    yield "Quick video break", "https://www.youtube.com/watch?v=abc", 4
    yield "Scrolling the feed", "https://reddit.com/r/all", 6


def scenario_mixed() -> Iterator[tuple[str, str, int]]:
    """Work interleaved with neutral and distracting browsing."""
    yield "Work", "https://github.com/org/repo", 5
    yield "News (neutral)", "https://news.example.com", 3
    yield "Social", "https://twitter.com/home", 2
    yield "Back to work", "https://leetcode.com/problems/two-sum", 5


SCENARIOS = {
    "deep_focus": scenario_deep_focus,
    "doomscroll": scenario_doomscroll,
    "mixed": scenario_mixed,
}

CYCLE = ["deep_focus", "doomscroll", "mixed"]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

async def run_scenario(
    name: str, engine: AccrualEngine, tabs: ScriptedTabs, clock: list[float], realtime: bool
) -> None:
    print(f"\n{'─' * 60}")
    print(f"  SCENARIO: {name.upper().replace('_', ' ')}")
    print(f"{'─' * 60}")

    for description, url, ticks in SCENARIOS[name]():
        tabs.open(url)
        await engine.on_tab_changed(now=clock[0])
        for _ in range(ticks):
            clock[0] += engine.tick_interval_s
            if realtime:
                await asyncio.sleep(engine.tick_interval_s)
            result = await engine.on_tick(now=clock[0])
            mark = {
                Outcome.ACCRUED: "✓",
                Outcome.BLOCKED: "⛔",
            }.get(result.outcome, "·")
            print(
                f"  {mark} {engine.ledger.balance:4d} coins  {result.coins_change:+3d}  "
                f"{result.outcome.value:<9} {result.site:<28} {description}"
            )
            if result.outcome == Outcome.BLOCKED:
                print(f"      tab sent to {tabs.navigations[-1][1]}")
                break
        await engine.wait_for_sync()


async def main_async(args: argparse.Namespace) -> None:
    state_dir = Path(tempfile.mkdtemp(prefix="focuscoin-sim-"))
    tabs = ScriptedTabs()
    async with SyncClient(api_base=args.api) as sync:
        engine = AccrualEngine(tabs, sync, AgentStateStore(state_dir / "agent_state.json"))
        clock = [time.time()]

        health = await sync.fetch_stats(engine.uuid)
        if health is None:
            print(f"[i] No stats yet for {engine.uuid} (or API at {args.api} unreachable)")

        await engine.start_session(now=clock[0])
        sequence = CYCLE if args.scenario == "cycle" else [args.scenario]
        for name in sequence:
            await run_scenario(name, engine, tabs, clock, args.realtime)
        await engine.stop_session(now=clock[0])

        print(f"\n[✓] Simulation complete — balance {engine.ledger.balance}, "
              f"earned today {engine.ledger.earned_today}, "
              f"{len(engine.buffer)} heartbeats still buffered")


def main() -> None:
    parser = argparse.ArgumentParser(description="FocusCoin browsing simulator")
    parser.add_argument(
        "--scenario",
        choices=list(SCENARIOS.keys()) + ["cycle"],
        default="cycle",
        help="Which scenario to run (default: cycle through all)",
    )
    parser.add_argument("--api", default=config.api_base, help="API base URL")
    parser.add_argument("--realtime", action="store_true", help="Sleep one tick between ticks")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
