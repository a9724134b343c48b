"""Synchronizer factory — wires the engine from TradeSyncSettings.

Dependency injection for the sync cycle:

    market     VenueClient (reads are always live, also in simulation)
    gateway    SimulatedOrderGateway when settings.simulation is set,
               else LiveOrderGateway over the venue client
    sink       PortfolioValueStore under settings.data_dir

Any of the three can be passed in to replace the default, which is how
tests run the engine against an in-memory venue.

The venue client reads its credentials from the environment:
  TRADESYNC_VENUE_KEY, TRADESYNC_VENUE_SECRET
"""

from __future__ import annotations

import structlog

from tradesync.config.instruments import InstrumentUniverse
from tradesync.config.settings import TradeSyncSettings, get_settings
from tradesync.execution.gateway import LiveOrderGateway, OrderGateway, SimulatedOrderGateway
from tradesync.infra.venue_client import MarketDataSource, VenueClient
from tradesync.portfolio.modes import build_trading_mode
from tradesync.portfolio.sizing import SizingCalculator
from tradesync.portfolio.sync import PortfolioSynchronizer
from tradesync.portfolio.valuation import WalletValuation
from tradesync.storage.value_store import PortfolioValueSink, PortfolioValueStore

logger = structlog.get_logger()


def build_venue_client(settings: TradeSyncSettings) -> VenueClient:
    """Create the venue client. Raises ValueError without credentials."""
    return VenueClient(base_url=settings.venue_base_url or None)


def build_universe(settings: TradeSyncSettings) -> InstrumentUniverse:
    if settings.instruments_path is None:
        return InstrumentUniverse.default()
    return InstrumentUniverse.from_yaml(settings.instruments_path)


def build_synchronizer(
    settings: TradeSyncSettings | None = None,
    *,
    market: MarketDataSource | None = None,
    gateway: OrderGateway | None = None,
    sink: PortfolioValueSink | None = None,
) -> PortfolioSynchronizer:
    """Build a PortfolioSynchronizer.

    Parameters
    ----------
    settings:
        Engine settings. Loaded from the environment when omitted.
    market:
        Venue read access. Defaults to a VenueClient, which also serves
        as the order venue for the live gateway.
    gateway:
        Order gateway. Defaults to simulated or live per settings.
    sink:
        Portfolio value sink. Defaults to a JSONL PortfolioValueStore.

    Raises
    ------
    ConfigurationError
        Settings the engine cannot run with.
    """
    settings = settings or get_settings()
    settings.validate()

    mode = build_trading_mode(settings.trading_mode, settings.investment_rate)

    if market is None:
        market = build_venue_client(settings)

    if gateway is None:
        if settings.simulation:
            gateway = SimulatedOrderGateway()
        else:
            gateway = LiveOrderGateway(market, confirm_timeout=settings.confirm_timeout)

    if sink is None:
        sink = PortfolioValueStore(persist_path=settings.value_store_path)

    sizing = SizingCalculator(
        investment_rate=mode.investment_rate,
        max_loss_per_position=settings.max_loss_per_position,
        max_single_position=settings.max_single_position,
    )

    synchronizer = PortfolioSynchronizer(
        market,
        gateway,
        mode,
        WalletValuation(market, mode.wallet_kind),
        sink,
        sizing,
        account_id=settings.account_id,
        entry_tolerance=settings.entry_tolerance,
        exit_tolerance=settings.exit_tolerance,
        invested_threshold=settings.invested_threshold,
    )

    logger.info(
        "Synchronizer built",
        mode=mode.name,
        simulated=gateway.simulated,
        account_id=settings.account_id,
        investment_rate=str(mode.investment_rate),
    )
    return synchronizer
