"""Tests for CoinLedger."""

from focuscoin.agent.classifier import SiteType
from focuscoin.agent.ledger import CoinLedger


class TestApply:
    def test_productive_delta_adds_to_balance_and_today(self):
        ledger = CoinLedger(balance=10)
        update = ledger.apply(9, SiteType.PRODUCTIVE)
        assert update.new_balance == 19
        assert update.clamped is False
        assert ledger.earned_today == 9

    def test_distracting_delta_within_balance(self):
        ledger = CoinLedger(balance=10, earned_today=5)
        update = ledger.apply(-4, SiteType.DISTRACTING)
        assert update.new_balance == 6
        assert update.clamped is False
        assert ledger.earned_today == 5

    def test_distracting_delta_from_zero_clamps(self):
        ledger = CoinLedger(balance=0)
        for k in (1, 2, 7):
            update = ledger.apply(-4 * k, SiteType.DISTRACTING)
            assert update.new_balance == 0
            assert update.clamped is True

    def test_partial_overdraft_clamps_to_zero(self):
        ledger = CoinLedger(balance=2)
        update = ledger.apply(-4, SiteType.DISTRACTING)
        assert update.new_balance == 0
        assert update.clamped is True
        assert ledger.balance == 0

    def test_exact_balance_does_not_clamp(self):
        ledger = CoinLedger(balance=4)
        update = ledger.apply(-4, SiteType.DISTRACTING)
        assert update.new_balance == 0
        assert update.clamped is False

    def test_balance_never_negative(self):
        ledger = CoinLedger(balance=3)
        for delta in (-4, 5, -100, 2, -1, -1, -1):
            ledger.apply(delta, SiteType.DISTRACTING)
            assert ledger.balance >= 0

    def test_negative_constructor_values_floor_at_zero(self):
        ledger = CoinLedger(balance=-5, earned_today=-1)
        assert ledger.balance == 0
        assert ledger.earned_today == 0


class TestResetDay:
    def test_reset_day_keeps_balance(self):
        ledger = CoinLedger(balance=20, earned_today=12)
        ledger.reset_day()
        assert ledger.earned_today == 0
        assert ledger.balance == 20
