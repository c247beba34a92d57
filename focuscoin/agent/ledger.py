"""
Coin Ledger — current balance and today's earnings, floored at zero.
"""

from __future__ import annotations

from dataclasses import dataclass

from .classifier import SiteType


@dataclass(frozen=True)
class LedgerUpdate:
    new_balance: int
    clamped: bool = False


class CoinLedger:

    def __init__(self, balance: int = 0, earned_today: int = 0):
        self.balance = max(int(balance), 0)
        self.earned_today = max(int(earned_today), 0)

    def apply(self, delta: int, site_type: SiteType = SiteType.PRODUCTIVE) -> LedgerUpdate:
        """
        Add *delta* to the balance. A distracting delta that would take the
        balance below zero floors it at 0 and reports ``clamped=True``;
        productive deltas never clamp. Only positive deltas count toward
        ``earned_today``.
        """
        result = self.balance + delta
        clamped = False
        if result < 0:
            result = 0
            clamped = site_type == SiteType.DISTRACTING
        self.balance = result
        if delta > 0:
            self.earned_today += delta
        return LedgerUpdate(new_balance=self.balance, clamped=clamped)

    def reset_day(self) -> None:
        self.earned_today = 0

    def __repr__(self) -> str:
        return f"CoinLedger(balance={self.balance}, earned_today={self.earned_today})"
