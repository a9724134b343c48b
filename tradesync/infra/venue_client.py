"""Venue REST API client for order state, wallets, positions, and prices.

Provides async access to a JSON REST trading venue with retry logic,
rate-limit backoff, and error mapping. Reads are retried; order
submission and cancellation are sent exactly once so a lost response
never duplicates an order.

Endpoints:
    GET    /v1/orders              open orders
    POST   /v1/orders              submit order
    GET    /v1/orders/{id}         single order
    DELETE /v1/orders/{id}         cancel order
    GET    /v1/wallets?type=...    wallets of one kind
    GET    /v1/positions           open margin positions
    GET    /v1/tickers/{symbol}    last traded price

Usage:
    client = VenueClient()
    orders = await client.list_open_orders()
"""

import asyncio
import os
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from tradesync.exceptions import ExternalAPIError
from tradesync.schemas.enums import OrderState, WalletKind
from tradesync.schemas.orders import LiveOrder, Position, Wallet

logger = structlog.get_logger()

# Venue status strings -> OrderState. Matched on prefix, the venue
# appends fill details (e.g. "EXECUTED @ 6500.0(0.2)").
_STATUS_MAP: tuple[tuple[str, OrderState], ...] = (
    ("ACTIVE", OrderState.ACTIVE),
    ("PARTIALLY FILLED", OrderState.PARTIALLY_FILLED),
    ("EXECUTED", OrderState.FILLED),
    ("POSTONLY CANCELED", OrderState.REJECTED),
    ("CANCELED", OrderState.CANCELLED),
    ("CANCELLED", OrderState.CANCELLED),
    ("REJECTED", OrderState.REJECTED),
    ("EXPIRED", OrderState.EXPIRED),
    ("PENDING", OrderState.PENDING),
)


@runtime_checkable
class MarketDataSource(Protocol):
    """Read-only snapshots of venue state.

    Every call returns a fresh snapshot; implementations must not cache.
    """

    async def list_open_orders(self) -> list[LiveOrder]:
        ...

    async def list_wallets(self, kind: WalletKind) -> list[Wallet]:
        ...

    async def list_positions(self) -> list[Position]:
        ...

    async def last_price(self, symbol: str) -> Decimal:
        ...


def parse_order_state(status: str) -> OrderState:
    normalized = status.strip().upper()
    for prefix, state in _STATUS_MAP:
        if normalized.startswith(prefix):
            return state
    return OrderState.PENDING


def parse_order(data: dict[str, Any]) -> LiveOrder:
    """Map a venue order dict to a LiveOrder snapshot."""
    try:
        return LiveOrder(
            order_id=str(data["id"]),
            symbol=data["symbol"],
            amount=Decimal(str(data["amount"])),
            price=Decimal(str(data.get("price") or "0")),
            order_type=data["type"],
            state=parse_order_state(data.get("status", "")),
            post_only=bool(data.get("post_only", False)),
        )
    except (KeyError, InvalidOperation, ValueError) as exc:
        raise ExternalAPIError(
            message=f"Malformed order in venue response: {exc}",
            service="venue",
        ) from exc


class VenueClient:
    """Async HTTP client for the venue REST API.

    Handles authentication, rate limiting, retries, and error mapping.
    Implements MarketDataSource and the raw order primitives used by
    LiveOrderGateway.
    """

    DEFAULT_URL = "https://api.venue.example"
    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 3
    RETRY_BACKOFF_BASE = 1.0  # seconds

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the venue client.

        Args:
            api_key: Venue API key. Falls back to TRADESYNC_VENUE_KEY env var.
            api_secret: Venue API secret. Falls back to TRADESYNC_VENUE_SECRET env var.
            base_url: Override base URL. Falls back to TRADESYNC_VENUE_URL, then DEFAULT_URL.
            timeout: Request timeout in seconds.
        """
        self._api_key = api_key or os.environ.get("TRADESYNC_VENUE_KEY", "")
        self._api_secret = api_secret or os.environ.get("TRADESYNC_VENUE_SECRET", "")

        if not self._api_key or not self._api_secret:
            raise ValueError(
                "Venue API credentials required. Pass api_key/api_secret or set "
                "TRADESYNC_VENUE_KEY/TRADESYNC_VENUE_SECRET env vars."
            )

        self._base_url = base_url or os.environ.get("TRADESYNC_VENUE_URL") or self.DEFAULT_URL
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {
                "X-API-KEY": self._api_key,
                "X-API-SECRET": self._api_secret,
            }
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> dict[str, Any]:
        """Make an HTTP request with retry logic and error handling.

        Args:
            method: HTTP method (GET, POST, DELETE).
            path: API endpoint path (e.g., /v1/orders).
            json: JSON body for POST requests.
            params: Query parameters.
            retry: Retry on rate limits and transport errors. Disabled for
                mutations, which must reach the venue at most once.

        Returns:
            Parsed JSON response as a dictionary.

        Raises:
            ExternalAPIError: On HTTP errors or unexpected responses.
        """
        client = await self._get_client()
        attempts = self.MAX_RETRIES if retry else 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                logger.debug(
                    "venue_request",
                    method=method,
                    path=path,
                    attempt=attempt + 1,
                )

                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params or {},
                )

                if response.status_code == 429 and attempt < attempts - 1:
                    wait = self.RETRY_BACKOFF_BASE * (2 ** attempt)
                    logger.debug(
                        "venue_rate_limited",
                        path=path,
                        wait_seconds=wait,
                        attempt=attempt + 1,
                    )
                    await asyncio.sleep(wait)
                    continue

                if response.status_code not in (200, 201, 204):
                    raise ExternalAPIError(
                        message=f"Venue API returned {response.status_code}: {response.text[:200]}",
                        service="venue",
                        status_code=response.status_code,
                    )

                if response.status_code == 204:
                    logger.debug("venue_success", path=path, status=204)
                    return {}

                try:
                    data = response.json()
                except ValueError as e:
                    raise ExternalAPIError(
                        message=f"Venue API returned non-JSON body: {response.text[:200]}",
                        service="venue",
                        status_code=response.status_code,
                    ) from e
                if not isinstance(data, dict):
                    raise ExternalAPIError(
                        message=f"Expected dict response, got {type(data).__name__}",
                        service="venue",
                    )

                logger.debug("venue_success", path=path, status=response.status_code)
                return data

            except httpx.TimeoutException as e:
                last_error = ExternalAPIError(
                    message=f"Venue API timeout on attempt {attempt + 1}: {e}",
                    service="venue",
                )
                logger.debug("venue_timeout", path=path, attempt=attempt + 1, error=str(e))
                if attempt < attempts - 1:
                    await asyncio.sleep(self.RETRY_BACKOFF_BASE * (2 ** attempt))
                    continue

            except httpx.HTTPError as e:
                last_error = ExternalAPIError(
                    message=f"Venue API HTTP error: {e}",
                    service="venue",
                )
                logger.debug("venue_http_error", path=path, attempt=attempt + 1, error=str(e))
                if attempt < attempts - 1:
                    await asyncio.sleep(self.RETRY_BACKOFF_BASE * (2 ** attempt))
                    continue

        raise last_error or ExternalAPIError(
            message="Venue API request failed after all retries",
            service="venue",
        )

    # Orders
    async def list_open_orders(self) -> list[LiveOrder]:
        """Fetch a fresh snapshot of all open orders."""
        response = await self._request("GET", "/v1/orders")
        return [parse_order(o) for o in response.get("orders", [])]

    async def get_order(self, order_id: str) -> LiveOrder:
        """Fetch a single order by id, including terminal orders."""
        return parse_order(await self._request("GET", f"/v1/orders/{order_id}"))

    async def submit_order(
        self,
        symbol: str,
        order_type: str,
        amount: Decimal,
        price: Decimal,
        post_only: bool = True,
    ) -> LiveOrder:
        """Submit an order. Sent once, never retried.

        Args:
            symbol: Venue symbol (e.g., "tBTCUSD").
            order_type: Venue order type (e.g., "EXCHANGE LIMIT").
            amount: Signed size, positive buys, negative sells.
            price: Limit price.
            post_only: Reject instead of taking liquidity.

        Returns:
            The venue's initial view of the order (usually PENDING).
        """
        body: dict[str, Any] = {
            "symbol": symbol,
            "type": order_type,
            "amount": str(amount),
            "price": str(price),
            "post_only": post_only,
        }
        return parse_order(await self._request("POST", "/v1/orders", json=body, retry=False))

    async def cancel_order(self, order_id: str) -> None:
        """Request cancellation. Sent once, never retried."""
        await self._request("DELETE", f"/v1/orders/{order_id}", retry=False)

    # Wallets & positions
    async def list_wallets(self, kind: WalletKind) -> list[Wallet]:
        response = await self._request("GET", "/v1/wallets", params={"type": kind.value})
        try:
            return [
                Wallet(
                    currency=w["currency"],
                    balance=Decimal(str(w["balance"])),
                    kind=WalletKind(w.get("type", kind.value)),
                )
                for w in response.get("wallets", [])
            ]
        except (KeyError, InvalidOperation, ValueError) as exc:
            raise ExternalAPIError(
                message=f"Malformed wallet in venue response: {exc}",
                service="venue",
            ) from exc

    async def list_positions(self) -> list[Position]:
        response = await self._request("GET", "/v1/positions")
        try:
            return [
                Position(
                    symbol=p["symbol"],
                    amount=Decimal(str(p["amount"])),
                    base_price=Decimal(str(p.get("base_price") or "0")),
                )
                for p in response.get("positions", [])
            ]
        except (KeyError, InvalidOperation, ValueError) as exc:
            raise ExternalAPIError(
                message=f"Malformed position in venue response: {exc}",
                service="venue",
            ) from exc

    # Market data
    async def last_price(self, symbol: str) -> Decimal:
        response = await self._request("GET", f"/v1/tickers/{symbol}")
        try:
            return Decimal(str(response["last_price"]))
        except (KeyError, InvalidOperation) as exc:
            raise ExternalAPIError(
                message=f"No last price for {symbol}: {exc}",
                symbol=symbol,
                service="venue",
            ) from exc
