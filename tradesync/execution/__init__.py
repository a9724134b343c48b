"""Order execution — the only code path that mutates venue state."""

from tradesync.execution.gateway import (
    LiveOrderGateway,
    OrderGateway,
    SimulatedOrderGateway,
)

__all__ = [
    "LiveOrderGateway",
    "OrderGateway",
    "SimulatedOrderGateway",
]
