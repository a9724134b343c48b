"""Entry reconciliation — converge open entry orders to the desired entries.

Per cycle:
    1. size every desired entry (fails fast on configuration errors,
       before any venue mutation)
    2. cancel entry orders for instruments no longer desired
    3. per desired instrument:
         size below minimum         -> SKIPPED, nothing placed
         no live order              -> place post-only
         live order, price moved    -> cancel and place (REPLACED)
         live order, price fine     -> KEPT

An entry order counts as moved when its price differs from the desired
price by more than the tolerance band, or sits above the desired price
at all: a buy resting at a worse price is always replaced.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Mapping

import structlog

from tradesync.exceptions import ConfigurationError, ExternalAPIError, ValuationError
from tradesync.execution.gateway import OrderGateway
from tradesync.infra.venue_client import MarketDataSource
from tradesync.portfolio.base import BaseReconciler
from tradesync.portfolio.modes import TradingMode, find_wallet
from tradesync.portfolio.sizing import SizingCalculator
from tradesync.portfolio.valuation import PortfolioValuation
from tradesync.schemas.enums import ActionOutcome, OrderSide
from tradesync.schemas.orders import DesiredEntry, Instrument, SizedEntry
from tradesync.schemas.portfolio import ReconcileAction
from tradesync.utils.decimals import almost_equal

logger = structlog.get_logger()

BUDGET_CURRENCY = "USD"


def entry_order_changed(order_price: Decimal, entry_price: Decimal, tolerance: Decimal) -> bool:
    if not almost_equal(order_price, entry_price, tolerance):
        return True
    return order_price > entry_price


class EntryReconciler(BaseReconciler):
    side = OrderSide.ENTRY

    def __init__(
        self,
        market: MarketDataSource,
        gateway: OrderGateway,
        mode: TradingMode,
        valuation: PortfolioValuation,
        sizing: SizingCalculator,
        tolerance: Decimal = Decimal("0.005"),
    ) -> None:
        super().__init__(market, gateway, mode, tolerance)
        self._valuation = valuation
        self._sizing = sizing

    async def size_entries(
        self, entries: Mapping[Instrument, DesiredEntry]
    ) -> dict[Instrument, SizedEntry]:
        """Size entries against the current portfolio value.

        Raises:
            ConfigurationError: budget wallet missing or invalid stop-loss.
            ValuationError: portfolio value unavailable.
        """
        if not entries:
            return {}

        try:
            wallets = await self._market.list_wallets(self._mode.wallet_kind)
        except ExternalAPIError as e:
            raise ValuationError(f"Unable to list wallets: {e}") from e

        if find_wallet(wallets, BUDGET_CURRENCY, self._mode.wallet_kind) is None:
            raise ConfigurationError(
                f"Unable to find {BUDGET_CURRENCY} {self._mode.wallet_kind.value} wallet"
            )

        total_value = await self._valuation.total_portfolio_value_usd()
        available_value = await self._valuation.available_portfolio_value_usd()
        return self._sizing.size(entries, total_value, available_value)

    async def reconcile(self, entries: Mapping[Instrument, DesiredEntry]) -> list[ReconcileAction]:
        """Run one entry reconciliation pass.

        Raises:
            ConfigurationError: before any order is touched.
        """
        logger.info("Processing entry orders", symbols=sorted(i.symbol for i in entries))

        sizing_error: ValuationError | None = None
        sized: dict[Instrument, SizedEntry] = {}
        try:
            sized = await self.size_entries(entries)
        except ValuationError as e:
            logger.error("Portfolio valuation failed, placing no entries", error=str(e))
            sizing_error = e

        actions: list[ReconcileAction] = []
        try:
            actions.extend(await self._cancel_removed(entries))
        except ExternalAPIError as e:
            logger.error("Unable to list open entry orders", error=str(e))
            return [self._failed(i.symbol, e) for i in entries]

        for instrument in entries:
            if sizing_error is not None:
                actions.append(self._failed(instrument.symbol, sizing_error))
                continue
            actions.append(await self._reconcile_one(sized[instrument]))

        return actions

    async def _cancel_removed(
        self, entries: Mapping[Instrument, DesiredEntry]
    ) -> list[ReconcileAction]:
        desired = {i.symbol for i in entries}
        actions = []
        for order in await self._classifier.entry_orders():
            if order.symbol in desired:
                continue
            logger.info("Entry order no longer desired, cancelling", symbol=order.symbol,
                        order_id=order.order_id)
            actions.append(await self._cancel(order))
        return actions

    async def _reconcile_one(self, sized: SizedEntry) -> ReconcileAction:
        instrument = sized.instrument
        symbol = instrument.symbol

        if not sized.meets_minimum:
            logger.info(
                "Not placing entry, position size too small",
                symbol=symbol,
                position_size=str(sized.position_size),
                min_order_size=str(instrument.min_order_size),
            )
            return self._action(
                symbol,
                ActionOutcome.SKIPPED,
                amount=sized.position_size,
                price=sized.entry_price,
                reason="position size below minimum order size",
            )

        try:
            live = await self._classifier.open_order_for_symbol(symbol, OrderSide.ENTRY)
        except ExternalAPIError as e:
            logger.error("Unable to list open orders", symbol=symbol, error=str(e))
            return self._failed(symbol, e)

        if live is not None:
            if not entry_order_changed(live.price, sized.entry_price, self._tolerance):
                logger.info("Entry order still valid", symbol=symbol, order_id=live.order_id,
                            price=str(live.price))
                return self._action(
                    symbol,
                    ActionOutcome.KEPT,
                    order_id=live.order_id,
                    amount=live.amount,
                    price=live.price,
                    reason="live price within tolerance",
                )

            logger.info(
                "Entry order changed, replacing",
                symbol=symbol,
                order_amount=str(live.amount),
                position_size=str(sized.position_size),
                order_price=str(live.price),
                entry_price=str(sized.entry_price),
            )
            cancelled = await self._cancel(live)
            if cancelled.outcome == ActionOutcome.FAILED:
                return cancelled

        return await self._place(instrument, sized.position_size, sized.entry_price, replaced=live)
