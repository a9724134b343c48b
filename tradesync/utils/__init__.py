"""tradesync utilities — logging and decimal helpers."""

from tradesync.utils.decimals import almost_equal, round_size
from tradesync.utils.logging import configure_logging, get_logger

__all__ = [
    "almost_equal",
    "round_size",
    "configure_logging",
    "get_logger",
]
