"""Order state classification — entry vs exit orders in a venue snapshot.

Only ACTIVE orders of the manager's own order type are considered;
pending, filled, cancelled and foreign-type orders are ignored. The
sign of the amount separates entries (> 0) from exits (<= 0).

The pure functions work on a given snapshot. OrderStateClassifier
fetches a fresh snapshot for every query and keeps no cache, so each
answer reflects venue state at the time of the call.
"""
from __future__ import annotations

from typing import Collection, Iterable

from tradesync.infra.venue_client import MarketDataSource
from tradesync.schemas.enums import OrderSide
from tradesync.schemas.orders import LiveOrder


def _managed(orders: Iterable[LiveOrder], order_type: str) -> list[LiveOrder]:
    return [o for o in orders if o.order_type == order_type and o.is_active]


def entry_orders(orders: Iterable[LiveOrder], order_type: str) -> list[LiveOrder]:
    return [o for o in _managed(orders, order_type) if o.side == OrderSide.ENTRY]


def exit_orders(orders: Iterable[LiveOrder], order_type: str) -> list[LiveOrder]:
    return [o for o in _managed(orders, order_type) if o.side == OrderSide.EXIT]


def open_order_for_symbol(
    orders: Iterable[LiveOrder],
    order_type: str,
    symbol: str,
    side: OrderSide | None = None,
    exclude: Collection[str] = (),
) -> LiveOrder | None:
    """The active order for symbol, or None.

    With side given, only orders of that side match. Order ids in exclude
    are skipped (orders already cancelled this cycle). If the venue holds
    duplicates the first in snapshot order is returned; duplicate exits
    are resolved by the exit reconciler before it asks.
    """
    for order in _managed(orders, order_type):
        if order.symbol != symbol:
            continue
        if side is not None and order.side != side:
            continue
        if order.order_id in exclude:
            continue
        return order
    return None


class OrderStateClassifier:
    """Snapshot-per-call view of the manager's open orders."""

    def __init__(self, market: MarketDataSource, order_type: str) -> None:
        self._market = market
        self._order_type = order_type

    async def open_order_for_symbol(
        self,
        symbol: str,
        side: OrderSide | None = None,
        exclude: Collection[str] = (),
    ) -> LiveOrder | None:
        orders = await self._market.list_open_orders()
        return open_order_for_symbol(orders, self._order_type, symbol, side, exclude)

    async def entry_orders(self) -> list[LiveOrder]:
        return entry_orders(await self._market.list_open_orders(), self._order_type)

    async def exit_orders(self) -> list[LiveOrder]:
        return exit_orders(await self._market.list_open_orders(), self._order_type)
