"""Exit reconciliation — keep exactly one protective sell per desired exit.

Cleanup runs over one snapshot of active exit orders:
    unknown    exit orders for symbols without a desired exit are cancelled
    duplicate  a symbol holding more than one exit order has all of them
               cancelled; no attempt is made to pick the best one

Placement then runs per desired exit on a fresh snapshot:
    live order at or above the exit price, or within tolerance -> KEPT
    live order below the exit price                           -> REPLACED
    no live order                                             -> sell the
        whole open position of the base currency at the exit price

Unlike entries, a protective sell is never moved when the price
improved in its favour.
"""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Mapping

import structlog

from tradesync.exceptions import ExternalAPIError
from tradesync.portfolio.base import BaseReconciler
from tradesync.schemas.enums import ActionOutcome, OrderSide
from tradesync.schemas.orders import DesiredExit, Instrument, LiveOrder
from tradesync.schemas.portfolio import ReconcileAction
from tradesync.utils.decimals import almost_equal

logger = structlog.get_logger()


def exit_order_acceptable(order_price: Decimal, exit_price: Decimal, tolerance: Decimal) -> bool:
    return order_price >= exit_price or almost_equal(order_price, exit_price, tolerance)


class ExitReconciler(BaseReconciler):
    side = OrderSide.EXIT

    async def reconcile(self, exits: Mapping[Instrument, DesiredExit]) -> list[ReconcileAction]:
        """Run one exit reconciliation pass."""
        logger.info("Processing exit orders", symbols=sorted(i.symbol for i in exits))

        try:
            snapshot = await self._classifier.exit_orders()
        except ExternalAPIError as e:
            logger.error("Unable to list open exit orders", error=str(e))
            return [self._failed(i.symbol, e) for i in exits]

        actions: list[ReconcileAction] = []
        cancelled: set[str] = set()
        blocked: set[str] = set()

        desired = {i.symbol for i in exits}
        for order in snapshot:
            if order.symbol in desired:
                continue
            logger.error("Found unknown exit order, cancelling", symbol=order.symbol,
                         order_id=order.order_id, price=str(order.price))
            actions.append(await self._track_cancel(order, cancelled, blocked))

        by_symbol: dict[str, list[LiveOrder]] = defaultdict(list)
        for order in snapshot:
            if order.order_id not in cancelled and order.symbol in desired:
                by_symbol[order.symbol].append(order)

        for symbol, orders in by_symbol.items():
            if len(orders) < 2:
                continue
            logger.error("Found duplicate exit orders, cancelling all", symbol=symbol,
                         order_ids=[o.order_id for o in orders])
            for order in orders:
                actions.append(await self._track_cancel(order, cancelled, blocked))

        for instrument, desired_exit in exits.items():
            if instrument.symbol in blocked:
                logger.warning("Skipping exit, cleanup cancel failed", symbol=instrument.symbol)
                continue
            actions.append(await self._reconcile_one(desired_exit, cancelled))

        return actions

    async def _track_cancel(
        self, order: LiveOrder, cancelled: set[str], blocked: set[str]
    ) -> ReconcileAction:
        action = await self._cancel(order)
        if action.outcome == ActionOutcome.CANCELLED:
            cancelled.add(order.order_id)
        else:
            blocked.add(order.symbol)
        return action

    async def _reconcile_one(self, desired: DesiredExit, cancelled: set[str]) -> ReconcileAction:
        instrument = desired.instrument
        symbol = instrument.symbol

        try:
            live = await self._classifier.open_order_for_symbol(
                symbol, OrderSide.EXIT, exclude=cancelled,
            )
        except ExternalAPIError as e:
            logger.error("Unable to list open orders", symbol=symbol, error=str(e))
            return self._failed(symbol, e)

        if live is not None:
            if exit_order_acceptable(live.price, desired.exit_price, self._tolerance):
                if live.price >= desired.exit_price:
                    reason = "live price at or above exit price"
                else:
                    reason = "live price within tolerance below exit price"
                logger.info("Exit order price is fine", symbol=symbol, reason=reason,
                            order_price=str(live.price), exit_price=str(desired.exit_price))
                return self._action(
                    symbol,
                    ActionOutcome.KEPT,
                    order_id=live.order_id,
                    amount=live.amount,
                    price=live.price,
                    reason=reason,
                )

            logger.info("Exit price moved, cancelling old order", symbol=symbol,
                        order_price=str(live.price), exit_price=str(desired.exit_price))
            action = await self._cancel(live)
            if action.outcome == ActionOutcome.FAILED:
                return action
            cancelled.add(live.order_id)

        try:
            position_size = await self._mode.open_position_size(
                self._market, instrument.base_currency,
            )
        except ExternalAPIError as e:
            logger.error("Unable to read open position", symbol=symbol, error=str(e))
            return self._failed(symbol, e)

        if position_size <= 0 or position_size < instrument.min_order_size:
            logger.info("No open position to protect", symbol=symbol,
                        position_size=str(position_size))
            return self._action(
                symbol,
                ActionOutcome.SKIPPED,
                amount=position_size,
                price=desired.exit_price,
                reason="open position below minimum order size",
            )

        return await self._place(instrument, -position_size, desired.exit_price, replaced=live)
