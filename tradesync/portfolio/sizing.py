"""Position sizing — risk-bounded entry sizes under a capital budget.

Each entry is sized by the tighter of two caps:

    capital cap = total * investment_rate * max_single_position / entry_price
    loss cap    = total * investment_rate * max_loss_per_position
                  / (entry_price - stop_loss_price)

If the sized entries together need more capital than the cycle budget
(available * investment_rate), every size is scaled by the same factor
budget / needed, preserving relative weights.

Sizing is pure: it reads nothing but its arguments and returns a new
mapping of SizedEntry records. Caller-owned DesiredEntry objects are
never modified.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

import structlog

from tradesync.exceptions import ConfigurationError
from tradesync.schemas.orders import DesiredEntry, Instrument, SizedEntry
from tradesync.utils.decimals import round_size

logger = structlog.get_logger()

DEFAULT_MAX_SINGLE_POSITION = Decimal("0.5")


@dataclass(frozen=True)
class SizingCalculator:
    """Computes position sizes for one cycle's desired entries."""

    investment_rate: Decimal
    max_loss_per_position: Decimal
    max_single_position: Decimal = DEFAULT_MAX_SINGLE_POSITION

    def position_size(self, entry: DesiredEntry, total_value: Decimal) -> Decimal:
        """Size a single entry before any budget correction.

        Raises:
            ConfigurationError: stop-loss at or above the entry price.
        """
        loss_per_unit = entry.entry_price - entry.stop_loss_price
        if loss_per_unit <= 0:
            raise ConfigurationError(
                f"Stop-loss {entry.stop_loss_price} is not below entry {entry.entry_price}",
                symbol=entry.instrument.symbol,
            )

        deployable = total_value * self.investment_rate
        capital_cap = deployable * self.max_single_position / entry.entry_price
        loss_cap = deployable * self.max_loss_per_position / loss_per_unit

        logger.info(
            "Position size caps",
            symbol=entry.instrument.symbol,
            capital_cap=str(capital_cap),
            loss_cap=str(loss_cap),
        )
        return round_size(min(capital_cap, loss_cap))

    def size(
        self,
        entries: Mapping[Instrument, DesiredEntry],
        total_value: Decimal,
        available_value: Decimal,
    ) -> dict[Instrument, SizedEntry]:
        """Size all entries and ration them to the cycle budget.

        Args:
            entries: Desired entries keyed by instrument.
            total_value: Total portfolio value in USD.
            available_value: Portfolio value in USD free for new entries.

        Returns:
            New mapping instrument -> SizedEntry.
        """
        sized = {
            instrument: SizedEntry(entry=entry, position_size=self.position_size(entry, total_value))
            for instrument, entry in entries.items()
        }

        capital_available = max(available_value * self.investment_rate, Decimal("0"))
        capital_needed = capital_committed(sized)

        if capital_needed <= capital_available:
            return sized

        factor = capital_available / capital_needed
        logger.info(
            "Capital needed exceeds budget, scaling positions",
            capital_needed=str(capital_needed),
            capital_available=str(capital_available),
            correction_factor=str(factor),
        )
        return {
            instrument: SizedEntry(
                entry=s.entry,
                position_size=round_size(s.position_size * factor),
            )
            for instrument, s in sized.items()
        }


def capital_committed(sized: Mapping[Instrument, SizedEntry]) -> Decimal:
    """Total quote capital committed by a sized mapping."""
    return sum((s.capital for s in sized.values()), Decimal("0"))
