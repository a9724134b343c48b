"""Trading modes — what differs between spot and margin portfolio management.

A TradingMode is injected into the reconcilers and the synchronizer.
It names the wallet partition holding the account's capital, the venue
order type the engine manages, the share of the portfolio eligible for
new entries, and how to read the size of an open position.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, runtime_checkable

from tradesync.config.instruments import base_currency_of
from tradesync.exceptions import ConfigurationError
from tradesync.infra.venue_client import MarketDataSource
from tradesync.schemas.enums import WalletKind
from tradesync.schemas.orders import Wallet


@runtime_checkable
class TradingMode(Protocol):
    name: str
    wallet_kind: WalletKind
    order_type: str
    investment_rate: Decimal

    async def open_position_size(self, market: MarketDataSource, currency: str) -> Decimal:
        """Size currently held in currency, zero when flat."""
        ...


def find_wallet(wallets: Iterable[Wallet], currency: str, kind: WalletKind) -> Wallet | None:
    for wallet in wallets:
        if wallet.kind == kind and wallet.currency == currency:
            return wallet
    return None


@dataclass(frozen=True)
class SpotTradingMode:
    """Spot trading from the exchange wallet; holdings are wallet balances."""

    name: str = "spot"
    wallet_kind: WalletKind = WalletKind.EXCHANGE
    order_type: str = "EXCHANGE LIMIT"
    investment_rate: Decimal = Decimal("1.0")

    async def open_position_size(self, market: MarketDataSource, currency: str) -> Decimal:
        wallet = find_wallet(await market.list_wallets(self.wallet_kind), currency, self.wallet_kind)
        return wallet.balance if wallet else Decimal("0")


@dataclass(frozen=True)
class MarginTradingMode:
    """Margin trading; holdings are venue positions, half the capital is deployable."""

    name: str = "margin"
    wallet_kind: WalletKind = WalletKind.MARGIN
    order_type: str = "LIMIT"
    investment_rate: Decimal = Decimal("0.5")

    async def open_position_size(self, market: MarketDataSource, currency: str) -> Decimal:
        total = Decimal("0")
        for position in await market.list_positions():
            try:
                base = base_currency_of(position.symbol)
            except ValueError:
                # derivatives and funding symbols are not managed here
                continue
            if base == currency:
                total += position.amount
        return total


def build_trading_mode(name: str, investment_rate: Decimal | None = None) -> TradingMode:
    """Create the trading mode for a settings name, optionally overriding its rate."""
    modes = {"spot": SpotTradingMode, "margin": MarginTradingMode}
    if name not in modes:
        raise ConfigurationError(f"Unknown trading mode {name!r}")
    if investment_rate is None:
        return modes[name]()
    return modes[name](investment_rate=investment_rate)
