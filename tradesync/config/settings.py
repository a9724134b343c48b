"""Centralized environment-based settings for tradesync.

Reads configuration from environment variables with sensible defaults.
The venue client reads its own credentials from env; this module
provides the engine-level risk and runtime settings.

Usage:
    from tradesync.config.settings import get_settings
    settings = get_settings()
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from tradesync.exceptions import ConfigurationError

TRADING_MODES = ("spot", "margin")


@dataclass(frozen=True)
class TradeSyncSettings:
    """Immutable application settings loaded from environment."""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Storage
    data_dir: Path = Path("data")
    instruments_path: Path | None = None

    # Execution mode
    simulation: bool = False
    trading_mode: str = "spot"
    account_id: str = "default"

    # Risk
    max_loss_per_position: Decimal = Decimal("0.05")
    max_single_position: Decimal = Decimal("0.5")
    investment_rate: Decimal | None = None  # None = trading mode default
    invested_threshold: Decimal = Decimal("0.002")

    # Price tolerance bands (relative to the desired price)
    entry_tolerance: Decimal = Decimal("0.005")
    exit_tolerance: Decimal = Decimal("0.005")

    # Venue
    venue_base_url: str = ""
    confirm_timeout: float = 30.0

    @property
    def value_store_path(self) -> Path:
        return self.data_dir / "portfolio_values.jsonl"

    def validate(self) -> None:
        """Raise ConfigurationError for settings the engine cannot run with."""
        if self.trading_mode not in TRADING_MODES:
            raise ConfigurationError(
                f"Unknown trading mode {self.trading_mode!r}, expected one of {TRADING_MODES}"
            )
        if not Decimal("0") < self.max_loss_per_position <= Decimal("1"):
            raise ConfigurationError("max_loss_per_position must be in (0, 1]")
        if not Decimal("0") < self.max_single_position <= Decimal("1"):
            raise ConfigurationError("max_single_position must be in (0, 1]")
        if self.investment_rate is not None and not Decimal("0") < self.investment_rate <= Decimal("1"):
            raise ConfigurationError("investment_rate must be in (0, 1]")
        if self.entry_tolerance < 0 or self.exit_tolerance < 0:
            raise ConfigurationError("Price tolerances must not be negative")


def get_settings() -> TradeSyncSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        TRADESYNC_LOG_LEVEL: Logging level (default: INFO)
        TRADESYNC_JSON_LOGS: Render logs as JSON (default: true)
        TRADESYNC_DATA_DIR: Storage directory (default: data)
        TRADESYNC_INSTRUMENTS: Path to instruments YAML (default: built-in universe)
        TRADESYNC_SIMULATION: Dry-run, no venue mutations (default: false)
        TRADESYNC_TRADING_MODE: spot or margin (default: spot)
        TRADESYNC_ACCOUNT_ID: Account id recorded with portfolio values
        TRADESYNC_MAX_LOSS_PER_POSITION: Fraction of capital at risk per position (default: 0.05)
        TRADESYNC_MAX_SINGLE_POSITION: Capital fraction cap per position (default: 0.5)
        TRADESYNC_INVESTMENT_RATE: Override the trading mode's investment rate
        TRADESYNC_INVESTED_THRESHOLD: Balance above which a position is open (default: 0.002)
        TRADESYNC_ENTRY_TOLERANCE: Entry price band (default: 0.005)
        TRADESYNC_EXIT_TOLERANCE: Exit price band (default: 0.005)
        TRADESYNC_VENUE_URL: Venue REST base URL
        TRADESYNC_CONFIRM_TIMEOUT: Seconds to wait for venue confirmation (default: 30)
    """
    def _bool(key: str, default: bool = False) -> bool:
        val = os.environ.get(key, "").lower()
        if val in ("1", "true", "yes"):
            return True
        if val in ("0", "false", "no"):
            return False
        return default

    def _decimal(key: str, default: str) -> Decimal:
        raw = os.environ.get(key, default)
        try:
            return Decimal(raw)
        except InvalidOperation as exc:
            raise ConfigurationError(f"{key} is not a number: {raw!r}") from exc

    instruments = os.environ.get("TRADESYNC_INSTRUMENTS", "")
    investment_rate = os.environ.get("TRADESYNC_INVESTMENT_RATE", "")

    return TradeSyncSettings(
        log_level=os.environ.get("TRADESYNC_LOG_LEVEL", "INFO").upper(),
        json_logs=_bool("TRADESYNC_JSON_LOGS", True),
        data_dir=Path(os.environ.get("TRADESYNC_DATA_DIR", "data")),
        instruments_path=Path(instruments) if instruments else None,
        simulation=_bool("TRADESYNC_SIMULATION", False),
        trading_mode=os.environ.get("TRADESYNC_TRADING_MODE", "spot").lower(),
        account_id=os.environ.get("TRADESYNC_ACCOUNT_ID", "default"),
        max_loss_per_position=_decimal("TRADESYNC_MAX_LOSS_PER_POSITION", "0.05"),
        max_single_position=_decimal("TRADESYNC_MAX_SINGLE_POSITION", "0.5"),
        investment_rate=(
            _decimal("TRADESYNC_INVESTMENT_RATE", investment_rate) if investment_rate else None
        ),
        invested_threshold=_decimal("TRADESYNC_INVESTED_THRESHOLD", "0.002"),
        entry_tolerance=_decimal("TRADESYNC_ENTRY_TOLERANCE", "0.005"),
        exit_tolerance=_decimal("TRADESYNC_EXIT_TOLERANCE", "0.005"),
        venue_base_url=os.environ.get("TRADESYNC_VENUE_URL", ""),
        confirm_timeout=float(os.environ.get("TRADESYNC_CONFIRM_TIMEOUT", "30")),
    )
