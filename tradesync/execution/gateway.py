"""Order execution gateways — place/cancel with venue confirmation.

Two execution modes share one interface:

    LiveOrderGateway       submits to the venue and waits until the order
                           is confirmed ACTIVE (or fully CANCELLED)
    SimulatedOrderGateway  logs and records every mutation, touches nothing

The reconcilers only see OrderGateway, so a dry run exercises exactly
the same diffing and logging as live trading.

Waiting is cooperative: cancelling the awaiting task aborts the wait
with asyncio.CancelledError, which gateways never swallow.
"""
from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import uuid4

import structlog

from tradesync.exceptions import CancellationError, ExternalAPIError, PlacementError
from tradesync.schemas.enums import OrderState, TERMINAL_ORDER_STATES
from tradesync.schemas.orders import Instrument, LiveOrder

logger = structlog.get_logger()


@runtime_checkable
class OrderGateway(Protocol):
    """Mutating venue primitives. Both calls return only once the venue
    has confirmed the resulting state."""

    simulated: bool

    async def place_order(
        self,
        instrument: Instrument,
        order_type: str,
        amount: Decimal,
        price: Decimal,
        post_only: bool = True,
    ) -> LiveOrder:
        """Place an order and wait until it is ACTIVE. Raises PlacementError."""
        ...

    async def cancel_order(self, order_id: str) -> None:
        """Cancel an order and wait until it is CANCELLED. Raises CancellationError."""
        ...


class OrderVenue(Protocol):
    """Raw, unconfirmed order primitives (implemented by VenueClient)."""

    async def submit_order(
        self,
        symbol: str,
        order_type: str,
        amount: Decimal,
        price: Decimal,
        post_only: bool = True,
    ) -> LiveOrder:
        ...

    async def get_order(self, order_id: str) -> LiveOrder:
        ...

    async def cancel_order(self, order_id: str) -> None:
        ...


class LiveOrderGateway:
    """Submits orders to the venue and polls until they settle."""

    simulated = False

    POLL_INTERVAL_SECONDS = 0.5
    DEFAULT_CONFIRM_TIMEOUT = 30.0

    def __init__(
        self,
        venue: OrderVenue,
        *,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._venue = venue
        self._confirm_timeout = confirm_timeout
        self._poll_interval = poll_interval

    @property
    def _max_polls(self) -> int:
        if self._poll_interval <= 0:
            return 1
        return max(1, int(self._confirm_timeout / self._poll_interval))

    async def place_order(
        self,
        instrument: Instrument,
        order_type: str,
        amount: Decimal,
        price: Decimal,
        post_only: bool = True,
    ) -> LiveOrder:
        symbol = instrument.symbol
        logger.info(
            "Placing order",
            symbol=symbol,
            order_type=order_type,
            amount=str(amount),
            price=str(price),
            post_only=post_only,
        )

        try:
            order = await self._venue.submit_order(symbol, order_type, amount, price, post_only)
        except ExternalAPIError as e:
            raise PlacementError(f"Venue rejected order: {e}", symbol=symbol) from e

        for _ in range(self._max_polls):
            if order.state == OrderState.ACTIVE:
                logger.info("Order active", symbol=symbol, order_id=order.order_id)
                return order
            if order.state in TERMINAL_ORDER_STATES:
                raise PlacementError(
                    f"Order ended in state {order.state.value} before becoming active",
                    symbol=symbol,
                    order_id=order.order_id,
                )
            await asyncio.sleep(self._poll_interval)
            order = await self._poll(order)

        if order.state == OrderState.ACTIVE:
            return order
        raise PlacementError(
            f"Order not confirmed active within {self._confirm_timeout}s",
            symbol=symbol,
            order_id=order.order_id,
        )

    async def cancel_order(self, order_id: str) -> None:
        logger.info("Cancelling order", order_id=order_id)

        try:
            await self._venue.cancel_order(order_id)
        except ExternalAPIError as e:
            raise CancellationError(f"Venue rejected cancel: {e}", order_id=order_id) from e

        for _ in range(self._max_polls):
            try:
                order = await self._venue.get_order(order_id)
            except ExternalAPIError as e:
                logger.warning("Cancel status poll failed", order_id=order_id, error=str(e))
            else:
                if order.state == OrderState.CANCELLED:
                    logger.info("Order cancelled", order_id=order_id, symbol=order.symbol)
                    return
                if order.state in TERMINAL_ORDER_STATES:
                    raise CancellationError(
                        f"Order ended in state {order.state.value} instead of CANCELLED",
                        symbol=order.symbol,
                        order_id=order_id,
                    )
            await asyncio.sleep(self._poll_interval)

        raise CancellationError(
            f"Cancel not confirmed within {self._confirm_timeout}s",
            order_id=order_id,
        )

    async def _poll(self, order: LiveOrder) -> LiveOrder:
        try:
            return await self._venue.get_order(order.order_id)
        except ExternalAPIError as e:
            logger.warning(
                "Order status poll failed",
                order_id=order.order_id,
                symbol=order.symbol,
                error=str(e),
            )
            return order


class SimulatedOrderGateway:
    """Dry-run gateway: every mutation is logged, recorded, and skipped."""

    simulated = True

    def __init__(self) -> None:
        self.placed: list[LiveOrder] = []
        self.cancelled: list[str] = []

    async def place_order(
        self,
        instrument: Instrument,
        order_type: str,
        amount: Decimal,
        price: Decimal,
        post_only: bool = True,
    ) -> LiveOrder:
        order = LiveOrder(
            order_id=f"sim-{uuid4().hex[:12]}",
            symbol=instrument.symbol,
            amount=amount,
            price=price,
            order_type=order_type,
            state=OrderState.ACTIVE,
            post_only=post_only,
        )
        self.placed.append(order)
        logger.info(
            "Simulation: order not placed",
            symbol=instrument.symbol,
            amount=str(amount),
            price=str(price),
        )
        return order

    async def cancel_order(self, order_id: str) -> None:
        self.cancelled.append(order_id)
        logger.info("Simulation: order not cancelled", order_id=order_id)
