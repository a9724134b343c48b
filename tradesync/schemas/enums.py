"""Shared enumerations for tradesync schemas.

All enums used across tradesync are defined here to ensure
consistency and avoid circular imports.
"""

from enum import Enum


class OrderState(str, Enum):
    """Lifecycle state of a venue order as reported by the venue."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


TERMINAL_ORDER_STATES = frozenset({
    OrderState.FILLED,
    OrderState.CANCELLED,
    OrderState.REJECTED,
    OrderState.EXPIRED,
})


class OrderSide(str, Enum):
    """Which side of a position an order belongs to.

    Encoded on the venue by the sign of the amount: positive amounts
    open a position (ENTRY), zero or negative amounts close it (EXIT).
    """
    ENTRY = "ENTRY"
    EXIT = "EXIT"


class WalletKind(str, Enum):
    """Venue wallet partitions."""
    EXCHANGE = "exchange"
    MARGIN = "margin"
    FUNDING = "funding"


class ActionOutcome(str, Enum):
    """Per-instrument result of one reconciliation step."""
    PLACED = "PLACED"
    REPLACED = "REPLACED"
    CANCELLED = "CANCELLED"
    KEPT = "KEPT"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
