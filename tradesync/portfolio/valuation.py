"""Portfolio valuation — USD value of the wallets a trading mode manages."""
from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

import structlog

from tradesync.exceptions import ExternalAPIError, ValuationError
from tradesync.infra.venue_client import MarketDataSource
from tradesync.schemas.enums import WalletKind
from tradesync.schemas.orders import Wallet

logger = structlog.get_logger()

USD = "USD"


@runtime_checkable
class PortfolioValuation(Protocol):
    async def total_portfolio_value_usd(self) -> Decimal:
        """Value of every managed wallet in USD. Raises ValuationError."""
        ...

    async def available_portfolio_value_usd(self) -> Decimal:
        """USD free for new entries. Raises ValuationError."""
        ...


class WalletValuation:
    """Values wallets of one kind at last traded USD prices.

    Non-USD balances are priced through the t<CCY>USD ticker.
    Zero balances are skipped without a price lookup.
    """

    def __init__(self, market: MarketDataSource, wallet_kind: WalletKind) -> None:
        self._market = market
        self._wallet_kind = wallet_kind

    async def _wallets(self) -> list[Wallet]:
        try:
            return await self._market.list_wallets(self._wallet_kind)
        except ExternalAPIError as e:
            raise ValuationError(f"Unable to list {self._wallet_kind.value} wallets: {e}") from e

    async def _usd_price(self, currency: str) -> Decimal:
        if currency == USD:
            return Decimal("1")
        symbol = f"t{currency}{USD}"
        try:
            return await self._market.last_price(symbol)
        except ExternalAPIError as e:
            raise ValuationError(f"No USD price for {currency}: {e}", symbol=symbol) from e

    async def total_portfolio_value_usd(self) -> Decimal:
        total = Decimal("0")
        for wallet in await self._wallets():
            if wallet.balance == 0:
                continue
            total += wallet.balance * await self._usd_price(wallet.currency)

        logger.debug("Portfolio value", wallet_kind=self._wallet_kind.value, usd_value=str(total))
        return total

    async def available_portfolio_value_usd(self) -> Decimal:
        for wallet in await self._wallets():
            if wallet.currency == USD:
                return wallet.balance
        return Decimal("0")
