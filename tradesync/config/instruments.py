"""Instrument universe configuration for tradesync.

The universe defines which pairs the engine manages and their venue
minimum order sizes. Loaded from YAML config, with defaults for testing.

YAML layout:
    name: crypto-usd
    instruments:
      - symbol: tBTCUSD
        base: BTC
        quote: USD
        min_order_size: "0.002"
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tradesync.exceptions import ConfigurationError
from tradesync.schemas.orders import Instrument


@dataclass(frozen=True)
class InstrumentUniverse:
    """Immutable set of instruments the engine reconciles."""
    instruments: tuple[Instrument, ...]
    name: str = "default"

    @property
    def symbols(self) -> list[str]:
        return sorted(i.symbol for i in self.instruments)

    def by_symbol(self, symbol: str) -> Instrument | None:
        for instrument in self.instruments:
            if instrument.symbol == symbol:
                return instrument
        return None

    def require(self, symbol: str) -> Instrument:
        """Look up a symbol, raising ConfigurationError if unmanaged."""
        instrument = self.by_symbol(symbol)
        if instrument is None:
            raise ConfigurationError(f"Unknown instrument {symbol!r}", symbol=symbol)
        return instrument

    @classmethod
    def from_yaml(cls, path: Path) -> InstrumentUniverse:
        """Load from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Unable to read instruments file {path}: {exc}") from exc
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstrumentUniverse:
        """Load from dict (e.g. parsed YAML)."""
        instruments = []
        for item in data.get("instruments", []):
            try:
                symbol = item["symbol"]
                instruments.append(
                    Instrument(
                        symbol=symbol,
                        base_currency=item.get("base") or base_currency_of(symbol),
                        quote_currency=item.get("quote", "USD"),
                        # str() first: YAML floats would otherwise carry binary noise
                        min_order_size=Decimal(str(item.get("min_order_size", "0"))),
                    )
                )
            except (KeyError, InvalidOperation, ValueError) as exc:
                raise ConfigurationError(f"Invalid instrument entry {item!r}: {exc}") from exc

        return cls(instruments=tuple(instruments), name=data.get("name", "default"))

    @classmethod
    def default(cls) -> InstrumentUniverse:
        """Default universe for testing — USD pairs of liquid coins."""
        rows = [
            ("tBTCUSD", "BTC", "0.002"),
            ("tETHUSD", "ETH", "0.04"),
            ("tLTCUSD", "LTC", "0.2"),
            ("tXRPUSD", "XRP", "22"),
            ("tEOSUSD", "EOS", "2"),
        ]
        instruments = tuple(
            Instrument(symbol=s, base_currency=b, quote_currency="USD", min_order_size=Decimal(m))
            for s, b, m in rows
        )
        return cls(instruments=instruments, name="default")


def base_currency_of(symbol: str) -> str:
    """tBTCUSD -> BTC. Only handles six-letter trading pair symbols."""
    core = symbol[1:] if symbol.startswith("t") else symbol
    if len(core) != 6:
        raise ValueError(f"cannot derive base currency from {symbol!r}")
    return core[:3]
