"""Tests for order-side schemas at tradesync/schemas/orders.py."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tradesync.schemas.enums import OrderSide, OrderState
from tradesync.schemas.orders import DesiredEntry, DesiredExit, Instrument, LiveOrder, SizedEntry

from tests.fixtures.sample_targets import BTC


def _order(amount: str, state: OrderState = OrderState.ACTIVE) -> LiveOrder:
    return LiveOrder(
        order_id="o-1",
        symbol="tBTCUSD",
        amount=Decimal(amount),
        price=Decimal("6000"),
        order_type="EXCHANGE LIMIT",
        state=state,
    )


class TestInstrument:
    def test_str_is_symbol(self):
        assert str(BTC) == "tBTCUSD"

    def test_hashable_key(self):
        same = Instrument(symbol="tBTCUSD", base_currency="BTC", min_order_size=Decimal("0.002"))
        assert {BTC: 1}[same] == 1

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValidationError):
            Instrument(symbol="tBTCUSD", base_currency="BTC", min_order_size=Decimal("-1"))


class TestLiveOrder:
    def test_side_from_sign(self):
        assert _order("0.5").side == OrderSide.ENTRY
        assert _order("-0.5").side == OrderSide.EXIT
        assert _order("0").side == OrderSide.EXIT

    def test_is_active(self):
        assert _order("1").is_active is True
        assert _order("1", OrderState.PENDING).is_active is False

    def test_frozen(self):
        order = _order("1")
        with pytest.raises(ValidationError):
            order.price = Decimal("1")


class TestDesiredTargets:
    def test_entry_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            DesiredEntry(instrument=BTC, entry_price=Decimal("0"), stop_loss_price=Decimal("0"))

    def test_stop_loss_may_be_zero(self):
        entry = DesiredEntry(instrument=BTC, entry_price=Decimal("100"), stop_loss_price=Decimal("0"))
        assert entry.stop_loss_price == Decimal("0")

    def test_exit_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            DesiredExit(instrument=BTC, exit_price=Decimal("-1"))


class TestSizedEntry:
    def _sized(self, size: str) -> SizedEntry:
        instrument = Instrument(symbol="tDOGEUSD", base_currency="DOGE", min_order_size=Decimal("0"))
        entry = DesiredEntry(instrument=instrument, entry_price=Decimal("100"), stop_loss_price=Decimal("90"))
        return SizedEntry(entry=entry, position_size=Decimal(size))

    def test_zero_size_never_meets_minimum(self):
        assert self._sized("0.000000").meets_minimum is False

    def test_positive_size_meets_zero_minimum(self):
        assert self._sized("0.000001").meets_minimum is True

    def test_capital(self):
        assert self._sized("2.5").capital == Decimal("250")
