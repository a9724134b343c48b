"""Shared test fixtures for tradesync tests.

Provides instruments, desired targets and an in-memory venue that can
be reused across test modules.
"""

from decimal import Decimal

import pytest

from tradesync.portfolio.modes import SpotTradingMode
from tradesync.portfolio.sizing import SizingCalculator
from tradesync.schemas.enums import WalletKind
from tradesync.schemas.orders import Instrument
from tradesync.storage.value_store import PortfolioValueStore

from tests.fixtures.fake_venue import FakeVenue
from tests.fixtures.sample_targets import BTC, ETH, XRP


# ---------------------------------------------------------------------------
# Instruments
# ---------------------------------------------------------------------------
@pytest.fixture
def btc() -> Instrument:
    return BTC


@pytest.fixture
def eth() -> Instrument:
    return ETH


@pytest.fixture
def xrp() -> Instrument:
    return XRP


# ---------------------------------------------------------------------------
# Engine components
# ---------------------------------------------------------------------------
@pytest.fixture
def venue() -> FakeVenue:
    """Spot venue holding 10,000 USD in the exchange wallet."""
    fake = FakeVenue()
    fake.set_wallet("USD", "10000", WalletKind.EXCHANGE)
    return fake


@pytest.fixture
def spot_mode() -> SpotTradingMode:
    return SpotTradingMode()


@pytest.fixture
def sizing() -> SizingCalculator:
    return SizingCalculator(
        investment_rate=Decimal("1"),
        max_loss_per_position=Decimal("0.01"),
    )


@pytest.fixture
def value_store() -> PortfolioValueStore:
    return PortfolioValueStore()
