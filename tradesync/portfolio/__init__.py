"""Portfolio reconciliation and sizing.

Sizes desired entries under risk and capital limits and converges the
venue's open orders toward the desired entries and exits.
"""
from .classifier import OrderStateClassifier
from .entry import EntryReconciler
from .exit import ExitReconciler
from .modes import MarginTradingMode, SpotTradingMode, TradingMode, build_trading_mode
from .sizing import SizingCalculator
from .sync import PortfolioSynchronizer
from .valuation import PortfolioValuation, WalletValuation

__all__ = [
    "OrderStateClassifier",
    "EntryReconciler",
    "ExitReconciler",
    "MarginTradingMode",
    "SpotTradingMode",
    "TradingMode",
    "build_trading_mode",
    "SizingCalculator",
    "PortfolioSynchronizer",
    "PortfolioValuation",
    "WalletValuation",
]
