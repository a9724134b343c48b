"""tradesync exception hierarchy.

All custom exceptions inherit from TradeSyncError, allowing callers
to catch broad or specific error categories as needed.

Propagation out of a sync cycle is deliberately narrow: only
ConfigurationError (and task cancellation) escape sync_portfolio().
Venue errors are recovered per instrument, valuation errors per step.
"""


class TradeSyncError(Exception):
    """Base exception for all tradesync errors."""

    def __init__(self, message: str = "", symbol: str | None = None) -> None:
        self.message = message
        self.symbol = symbol
        super().__init__(message)


class ConfigurationError(TradeSyncError):
    """Raised when the engine is misconfigured for the current cycle.

    Examples: budget wallet missing, stop-loss at or above the entry
    price, unreadable instrument file, unknown trading mode.
    """


class ValuationError(TradeSyncError):
    """Raised when the portfolio value cannot be determined.

    Examples: no last price for a held currency, venue unreachable
    while listing wallets.
    """


class VenueError(TradeSyncError):
    """Base class for rejected or unconfirmed venue operations."""

    def __init__(
        self,
        message: str = "",
        symbol: str | None = None,
        order_id: str | None = None,
    ) -> None:
        self.order_id = order_id
        super().__init__(message, symbol)


class PlacementError(VenueError):
    """Raised when an order is rejected or never confirmed as active."""


class CancellationError(VenueError):
    """Raised when a cancel is rejected or the order ended in another state.

    Examples: order filled between classification and cancellation,
    confirmation timeout.
    """


class ExternalAPIError(TradeSyncError):
    """Raised when an HTTP call to the venue fails.

    Examples: HTTP timeout, rate limiting, authentication failure,
    unexpected response format.
    """

    def __init__(
        self,
        message: str = "",
        symbol: str | None = None,
        status_code: int | None = None,
        service: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.service = service
        super().__init__(message, symbol)
