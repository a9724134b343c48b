"""tradesync — position reconciliation and sizing for a trading bot.

Each strategy tick hands the engine the desired entries and exits; the
engine sizes the entries under risk and capital limits and converges
the venue's open orders toward that desired state.
"""

__version__ = "0.1.0"
