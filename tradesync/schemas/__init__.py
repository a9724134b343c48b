"""tradesync schemas — typed records exchanged between reconcilers and the venue."""

from tradesync.schemas.enums import (
    ActionOutcome,
    OrderSide,
    OrderState,
    TERMINAL_ORDER_STATES,
    WalletKind,
)
from tradesync.schemas.orders import (
    DesiredEntry,
    DesiredExit,
    Instrument,
    LiveOrder,
    Position,
    SizedEntry,
    Wallet,
)
from tradesync.schemas.portfolio import (
    PortfolioValueSnapshot,
    ReconcileAction,
    SyncReport,
)

__all__ = [
    "ActionOutcome",
    "OrderSide",
    "OrderState",
    "TERMINAL_ORDER_STATES",
    "WalletKind",
    "DesiredEntry",
    "DesiredExit",
    "Instrument",
    "LiveOrder",
    "Position",
    "SizedEntry",
    "Wallet",
    "PortfolioValueSnapshot",
    "ReconcileAction",
    "SyncReport",
]
