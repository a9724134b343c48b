"""Tests for ExitReconciler at tradesync/portfolio/exit.py."""
from decimal import Decimal

import pytest

from tradesync.portfolio.exit import ExitReconciler, exit_order_acceptable
from tradesync.portfolio.modes import MarginTradingMode
from tradesync.schemas.enums import ActionOutcome, OrderSide, WalletKind

from tests.fixtures.fake_venue import FakeVenue
from tests.fixtures.sample_targets import BTC, ETH, make_exit

TOL = Decimal("0.005")


@pytest.fixture
def reconciler(venue, spot_mode) -> ExitReconciler:
    return ExitReconciler(venue, venue, spot_mode, tolerance=TOL)


class TestExitOrderAcceptable:
    def test_above_exit_price_kept(self):
        assert exit_order_acceptable(Decimal("120"), Decimal("100"), TOL) is True

    def test_within_band_below_kept(self):
        assert exit_order_acceptable(Decimal("99.5"), Decimal("100"), TOL) is True

    def test_below_band_rejected(self):
        assert exit_order_acceptable(Decimal("99.4"), Decimal("100"), TOL) is False


class TestPlacement:
    @pytest.mark.asyncio
    async def test_sells_whole_position(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.PLACED
        assert actions[0].side == OrderSide.EXIT
        assert venue.placed == [("place", "tBTCUSD", Decimal("-0.5"), Decimal("6000"))]

    @pytest.mark.asyncio
    async def test_keeps_order_above_exit_price(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        live = venue.add_order("tBTCUSD", "-0.5", "6100")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.KEPT
        assert actions[0].reason == "live price at or above exit price"
        assert actions[0].order_id == live.order_id
        assert venue.calls == []

    @pytest.mark.asyncio
    async def test_keeps_order_within_tolerance_below(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        venue.add_order("tBTCUSD", "-0.5", "5980")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.KEPT
        assert actions[0].reason == "live price within tolerance below exit price"
        assert venue.calls == []

    @pytest.mark.asyncio
    async def test_replaces_order_below_exit_price(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        live = venue.add_order("tBTCUSD", "-0.5", "5900")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.REPLACED
        assert venue.calls == [
            ("cancel", live.order_id),
            ("place", "tBTCUSD", Decimal("-0.5"), Decimal("6000")),
        ]

    @pytest.mark.asyncio
    async def test_no_position_skipped(self, reconciler, venue):
        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.SKIPPED
        assert venue.calls == []

    @pytest.mark.asyncio
    async def test_position_below_minimum_skipped(self, reconciler, venue):
        venue.set_wallet("BTC", "0.001")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.SKIPPED
        assert venue.placed == []

    @pytest.mark.asyncio
    async def test_entry_orders_untouched(self, reconciler, venue):
        venue.add_order("tETHUSD", "1", "200")

        await reconciler.reconcile({})

        assert venue.calls == []


class TestCleanup:
    @pytest.mark.asyncio
    async def test_duplicates_all_cancelled_then_one_placed(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        first = venue.add_order("tBTCUSD", "-0.25", "6000")
        second = venue.add_order("tBTCUSD", "-0.25", "6000")

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert [a.outcome for a in actions] == [
            ActionOutcome.CANCELLED,
            ActionOutcome.CANCELLED,
            ActionOutcome.PLACED,
        ]
        assert venue.cancelled == [first.order_id, second.order_id]
        assert len(venue.open_orders_for("tBTCUSD")) == 1
        assert venue.open_orders_for("tBTCUSD")[0].amount == Decimal("-0.5")

    @pytest.mark.asyncio
    async def test_unknown_exit_cancelled(self, reconciler, venue):
        unknown = venue.add_order("tETHUSD", "-1", "300")

        actions = await reconciler.reconcile({})

        assert actions[0].outcome == ActionOutcome.CANCELLED
        assert actions[0].symbol == "tETHUSD"
        assert venue.cancelled == [unknown.order_id]

    @pytest.mark.asyncio
    async def test_unknown_runs_before_duplicates(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        dup_a = venue.add_order("tBTCUSD", "-0.5", "6000")
        unknown = venue.add_order("tETHUSD", "-1", "300")
        dup_b = venue.add_order("tBTCUSD", "-0.5", "6000")

        await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert venue.cancelled == [unknown.order_id, dup_a.order_id, dup_b.order_id]

    @pytest.mark.asyncio
    async def test_failed_cleanup_cancel_blocks_symbol(self, reconciler, venue):
        venue.set_wallet("BTC", "0.5")
        venue.set_wallet("ETH", "2")
        stuck = venue.add_order("tBTCUSD", "-0.25", "6000")
        venue.add_order("tBTCUSD", "-0.25", "6000")
        venue.fail_cancel.add(stuck.order_id)

        actions = await reconciler.reconcile({
            BTC: make_exit(BTC, "6000"),
            ETH: make_exit(ETH, "300"),
        })

        btc_actions = [a for a in actions if a.symbol == "tBTCUSD"]
        assert ActionOutcome.FAILED in [a.outcome for a in btc_actions]
        assert [c for c in venue.placed if c[1] == "tBTCUSD"] == []
        assert [a.outcome for a in actions if a.symbol == "tETHUSD"] == [ActionOutcome.PLACED]

    @pytest.mark.asyncio
    async def test_listing_failure_fails_all(self, reconciler, venue):
        venue.fail_listing = True

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert [a.outcome for a in actions] == [ActionOutcome.FAILED]
        assert venue.calls == []


class TestMarginMode:
    @pytest.mark.asyncio
    async def test_sells_open_position(self):
        venue = FakeVenue()
        venue.set_wallet("USD", "10000", WalletKind.MARGIN)
        venue.add_position("tBTCUSD", "0.3")
        reconciler = ExitReconciler(venue, venue, MarginTradingMode(), tolerance=TOL)

        actions = await reconciler.reconcile({BTC: make_exit(BTC, "6000")})

        assert actions[0].outcome == ActionOutcome.PLACED
        assert venue.placed == [("place", "tBTCUSD", Decimal("-0.3"), Decimal("6000"))]
        assert venue.open_orders_for("tBTCUSD")[0].order_type == "LIMIT"

    @pytest.mark.asyncio
    async def test_ignores_spot_order_type(self):
        venue = FakeVenue()
        venue.add_order("tETHUSD", "-1", "300")  # EXCHANGE LIMIT
        reconciler = ExitReconciler(venue, venue, MarginTradingMode(), tolerance=TOL)

        await reconciler.reconcile({})

        assert venue.calls == []
