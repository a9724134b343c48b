"""Tests for sync records at tradesync/schemas/portfolio.py."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tradesync.schemas.enums import ActionOutcome, OrderSide
from tradesync.schemas.portfolio import PortfolioValueSnapshot, ReconcileAction, SyncReport

NOW = datetime(2026, 2, 9, 14, 30, 0, tzinfo=timezone.utc)


def _action(outcome: ActionOutcome, side: OrderSide = OrderSide.ENTRY) -> ReconcileAction:
    return ReconcileAction(symbol="tBTCUSD", side=side, outcome=outcome)


class TestReconcileAction:
    @pytest.mark.parametrize(
        "outcome,mutated",
        [
            (ActionOutcome.PLACED, True),
            (ActionOutcome.REPLACED, True),
            (ActionOutcome.CANCELLED, True),
            (ActionOutcome.KEPT, False),
            (ActionOutcome.SKIPPED, False),
            (ActionOutcome.FAILED, False),
        ],
    )
    def test_mutated_venue(self, outcome, mutated):
        assert _action(outcome).mutated_venue is mutated


class TestSyncReport:
    def test_counts(self):
        report = SyncReport(
            mode="spot",
            started_at=NOW,
            finished_at=NOW + timedelta(milliseconds=250),
            entry_actions=[_action(ActionOutcome.PLACED), _action(ActionOutcome.REPLACED)],
            exit_actions=[
                _action(ActionOutcome.CANCELLED, OrderSide.EXIT),
                _action(ActionOutcome.FAILED, OrderSide.EXIT),
                _action(ActionOutcome.SKIPPED, OrderSide.EXIT),
            ],
        )

        assert len(report.actions) == 5
        assert report.placed_count == 2
        assert report.cancelled_count == 2
        assert report.failed_count == 1
        assert report.skipped_count == 1
        assert report.mutation_count == 3
        assert report.summary()["mutations"] == 3
        assert report.duration_ms == pytest.approx(250.0)

    def test_summary_without_snapshot(self):
        report = SyncReport(mode="margin", simulated=True, started_at=NOW)
        summary = report.summary()

        assert summary["mode"] == "margin"
        assert summary["simulated"] is True
        assert summary["portfolio_value_usd"] is None
        assert summary["duration_ms"] == 0.0


class TestPortfolioValueSnapshot:
    def test_requires_timezone(self):
        with pytest.raises(ValidationError, match="timezone"):
            PortfolioValueSnapshot(
                account_id="acct-1", usd_value=Decimal("1"), timestamp=datetime(2026, 1, 1),
            )

    def test_ids_unique(self):
        a = PortfolioValueSnapshot(account_id="acct-1", usd_value=Decimal("1"), timestamp=NOW)
        b = PortfolioValueSnapshot(account_id="acct-1", usd_value=Decimal("1"), timestamp=NOW)
        assert a.snapshot_id != b.snapshot_id
