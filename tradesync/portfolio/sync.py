"""Portfolio synchronizer — one reconciliation cycle per strategy tick.

Order within a cycle is fixed:
    1. EntryReconciler  (sizes, cancels removed entries, places/replaces)
    2. ExitReconciler   (exit sizes read open positions, which are only
                         accurate once entries have settled)
    3. portfolio value snapshot handed to the persistence sink

Only ConfigurationError and task cancellation escape sync_portfolio().
Everything else is reported per instrument in the returned SyncReport;
the next tick re-diffs from scratch.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping
from uuid import UUID, uuid4

import structlog

from tradesync.exceptions import ValuationError
from tradesync.execution.gateway import OrderGateway
from tradesync.infra.venue_client import MarketDataSource
from tradesync.portfolio.entry import EntryReconciler
from tradesync.portfolio.exit import ExitReconciler
from tradesync.portfolio.modes import TradingMode, find_wallet
from tradesync.portfolio.sizing import SizingCalculator
from tradesync.portfolio.valuation import PortfolioValuation
from tradesync.schemas.enums import ActionOutcome
from tradesync.schemas.orders import DesiredEntry, DesiredExit, Instrument
from tradesync.schemas.portfolio import PortfolioValueSnapshot, SyncReport
from tradesync.storage.value_store import PortfolioValueSink
from tradesync.utils.logging import cycle_context, get_logger

logger = structlog.get_logger()

DEFAULT_INVESTED_THRESHOLD = Decimal("0.002")


class PortfolioSynchronizer:
    """Entry point for the strategy loop.

    Flow:
    1. sync_portfolio() — reconcile entries, then exits, then record value
    2. is_position_open() — re-entry eligibility for the strategy
    """

    def __init__(
        self,
        market: MarketDataSource,
        gateway: OrderGateway,
        mode: TradingMode,
        valuation: PortfolioValuation,
        sink: PortfolioValueSink,
        sizing: SizingCalculator,
        *,
        account_id: str,
        entry_tolerance: Decimal = Decimal("0.005"),
        exit_tolerance: Decimal = Decimal("0.005"),
        invested_threshold: Decimal = DEFAULT_INVESTED_THRESHOLD,
    ) -> None:
        self._market = market
        self._gateway = gateway
        self._mode = mode
        self._valuation = valuation
        self._sink = sink
        self._account_id = account_id
        self._invested_threshold = invested_threshold

        self._entries = EntryReconciler(
            market, gateway, mode, valuation, sizing, tolerance=entry_tolerance,
        )
        self._exits = ExitReconciler(market, gateway, mode, tolerance=exit_tolerance)

    @property
    def mode(self) -> TradingMode:
        return self._mode

    @property
    def simulated(self) -> bool:
        return self._gateway.simulated

    async def sync_portfolio(
        self,
        entries: Mapping[Instrument, DesiredEntry],
        exits: Mapping[Instrument, DesiredExit],
    ) -> SyncReport:
        """Reconcile venue orders to the desired entries and exits.

        Args:
            entries: Desired entry per instrument.
            exits: Desired exit price per instrument.

        Returns:
            SyncReport with one action per decision taken.

        Raises:
            ConfigurationError: budget wallet missing or invalid entry.
        """
        cycle_id = uuid4()
        with cycle_context(str(cycle_id)):
            return await self._run_cycle(cycle_id, entries, exits)

    async def _run_cycle(
        self,
        cycle_id: UUID,
        entries: Mapping[Instrument, DesiredEntry],
        exits: Mapping[Instrument, DesiredExit],
    ) -> SyncReport:
        log = get_logger("sync")
        started_at = datetime.now(timezone.utc)

        log.info(
            "Sync cycle started",
            mode=self._mode.name,
            simulated=self.simulated,
            entries=len(entries),
            exits=len(exits),
        )

        entry_actions = await self._entries.reconcile(entries)
        exit_actions = await self._exits.reconcile(exits)
        snapshot = await self._record_portfolio_value()

        report = SyncReport(
            cycle_id=cycle_id,
            mode=self._mode.name,
            simulated=self.simulated,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            entry_actions=entry_actions,
            exit_actions=exit_actions,
            snapshot=snapshot,
        )

        for action in report.actions:
            if action.outcome == ActionOutcome.FAILED:
                log.warning(
                    "Instrument not reconciled this cycle",
                    symbol=action.symbol,
                    side=action.side.value,
                    error=action.error,
                )

        log.info("Sync cycle complete", **report.summary())
        return report

    async def _record_portfolio_value(self) -> PortfolioValueSnapshot | None:
        logger.debug("Updating portfolio value")
        try:
            usd_value = await self._valuation.total_portfolio_value_usd()
        except ValuationError as e:
            logger.error("Unable to value portfolio, snapshot skipped", error=str(e))
            return None

        return self._sink.record_portfolio_value(
            self._account_id, usd_value, datetime.now(timezone.utc),
        )

    async def is_position_open(self, currency: str) -> bool:
        """Whether the wallet for currency holds more than the invested threshold."""
        wallets = await self._market.list_wallets(self._mode.wallet_kind)
        wallet = find_wallet(wallets, currency, self._mode.wallet_kind)

        if wallet is None:
            # unused wallets are not reported by the venue
            logger.debug("No wallet for currency", currency=currency)
            return False

        return wallet.balance > self._invested_threshold

    def __repr__(self) -> str:
        return f"PortfolioSynchronizer(account={self._account_id!r}, mode={self._mode.name!r})"
