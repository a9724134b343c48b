"""Desired-state targets for one sync cycle, loaded from YAML.

The strategy normally builds DesiredEntry/DesiredExit objects in code.
For manual runs (``python -m tradesync sync --targets ...``) the same
targets can be written down:

    entries:
      - symbol: tBTCUSD
        entry_price: "6500"
        stop_loss_price: "6200"
    exits:
      - symbol: tETHUSD
        exit_price: "480"

Symbols must belong to the instrument universe.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tradesync.config.instruments import InstrumentUniverse
from tradesync.exceptions import ConfigurationError
from tradesync.schemas.orders import DesiredEntry, DesiredExit, Instrument


@dataclass(frozen=True)
class SyncTargets:
    entries: dict[Instrument, DesiredEntry] = field(default_factory=dict)
    exits: dict[Instrument, DesiredExit] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Path, universe: InstrumentUniverse) -> SyncTargets:
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Unable to read targets file {path}: {exc}") from exc
        return cls.from_dict(data or {}, universe)

    @classmethod
    def from_dict(cls, data: dict[str, Any], universe: InstrumentUniverse) -> SyncTargets:
        entries: dict[Instrument, DesiredEntry] = {}
        exits: dict[Instrument, DesiredExit] = {}

        for item in data.get("entries") or []:
            try:
                instrument = universe.require(item["symbol"])
                entries[instrument] = DesiredEntry(
                    instrument=instrument,
                    entry_price=Decimal(str(item["entry_price"])),
                    stop_loss_price=Decimal(str(item["stop_loss_price"])),
                )
            except (KeyError, InvalidOperation, ValidationError) as exc:
                raise ConfigurationError(f"Invalid entry target {item!r}: {exc}") from exc

        for item in data.get("exits") or []:
            try:
                instrument = universe.require(item["symbol"])
                exits[instrument] = DesiredExit(
                    instrument=instrument,
                    exit_price=Decimal(str(item["exit_price"])),
                )
            except (KeyError, InvalidOperation, ValidationError) as exc:
                raise ConfigurationError(f"Invalid exit target {item!r}: {exc}") from exc

        return cls(entries=entries, exits=exits)
