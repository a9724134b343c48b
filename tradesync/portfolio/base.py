"""Base reconciler infrastructure shared by the entry and exit reconcilers.

A reconciler compares one side (entries or exits) of the desired state
with the venue's open orders and issues cancel/place calls through the
OrderGateway. Every decision is returned as a ReconcileAction; venue
failures become FAILED actions instead of exceptions, so one bad order
never blocks the rest of the portfolio.
"""
from __future__ import annotations

from abc import ABC
from decimal import Decimal

import structlog

from tradesync.exceptions import CancellationError, PlacementError
from tradesync.execution.gateway import OrderGateway
from tradesync.infra.venue_client import MarketDataSource
from tradesync.portfolio.classifier import OrderStateClassifier
from tradesync.portfolio.modes import TradingMode
from tradesync.schemas.enums import ActionOutcome, OrderSide
from tradesync.schemas.orders import Instrument, LiveOrder
from tradesync.schemas.portfolio import ReconcileAction

logger = structlog.get_logger()


class BaseReconciler(ABC):
    """Common plumbing: classifier, gateway calls, action records."""

    side: OrderSide

    def __init__(
        self,
        market: MarketDataSource,
        gateway: OrderGateway,
        mode: TradingMode,
        tolerance: Decimal,
    ) -> None:
        self._market = market
        self._gateway = gateway
        self._mode = mode
        self._tolerance = tolerance
        self._classifier = OrderStateClassifier(market, mode.order_type)

    def _action(self, symbol: str, outcome: ActionOutcome, **fields: object) -> ReconcileAction:
        return ReconcileAction(symbol=symbol, side=self.side, outcome=outcome, **fields)

    def _failed(self, symbol: str, error: Exception | str) -> ReconcileAction:
        return self._action(symbol, ActionOutcome.FAILED, error=str(error))

    async def _cancel(self, order: LiveOrder) -> ReconcileAction:
        """Cancel a live order, reporting CANCELLED or FAILED."""
        try:
            await self._gateway.cancel_order(order.order_id)
        except CancellationError as e:
            logger.error(
                "Unable to cancel order",
                symbol=order.symbol,
                order_id=order.order_id,
                side=self.side.value,
                error=str(e),
            )
            return self._failed(order.symbol, e)
        return self._action(
            order.symbol,
            ActionOutcome.CANCELLED,
            order_id=order.order_id,
            amount=order.amount,
            price=order.price,
        )

    async def _place(
        self,
        instrument: Instrument,
        amount: Decimal,
        price: Decimal,
        replaced: LiveOrder | None = None,
    ) -> ReconcileAction:
        """Place a post-only order, reporting PLACED/REPLACED or FAILED."""
        try:
            order = await self._gateway.place_order(
                instrument, self._mode.order_type, amount, price, post_only=True,
            )
        except PlacementError as e:
            logger.error(
                "Unable to place order",
                symbol=instrument.symbol,
                side=self.side.value,
                amount=str(amount),
                price=str(price),
                error=str(e),
            )
            if replaced is not None:
                return self._failed(
                    instrument.symbol, f"old order {replaced.order_id} cancelled, new order failed: {e}",
                )
            return self._failed(instrument.symbol, e)

        return self._action(
            instrument.symbol,
            ActionOutcome.REPLACED if replaced is not None else ActionOutcome.PLACED,
            order_id=order.order_id,
            amount=amount,
            price=price,
        )
