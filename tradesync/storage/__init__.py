"""Storage layer — persistence for portfolio value history.

Stores are append-only: a recorded snapshot is never modified.
"""

from tradesync.storage.value_store import PortfolioValueSink, PortfolioValueStore

__all__ = [
    "PortfolioValueSink",
    "PortfolioValueStore",
]
