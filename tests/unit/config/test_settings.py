"""Tests for TradeSyncSettings — environment-based configuration."""

import dataclasses
import os
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from tradesync.config.settings import TradeSyncSettings, get_settings
from tradesync.exceptions import ConfigurationError


class TestDefaults:
    """Test default values when no env vars are set."""

    def test_default_log_level(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.log_level == "INFO"
        assert settings.json_logs is True

    def test_default_storage(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.data_dir == Path("data")
        assert settings.value_store_path == Path("data/portfolio_values.jsonl")
        assert settings.instruments_path is None

    def test_default_risk(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.max_loss_per_position == Decimal("0.05")
        assert settings.max_single_position == Decimal("0.5")
        assert settings.investment_rate is None
        assert settings.invested_threshold == Decimal("0.002")

    def test_default_tolerances(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.entry_tolerance == Decimal("0.005")
        assert settings.exit_tolerance == Decimal("0.005")

    def test_default_mode(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.simulation is False
        assert settings.trading_mode == "spot"


class TestEnvOverrides:
    """Test that environment variables override defaults."""

    def test_log_level_override(self):
        with patch.dict(os.environ, {"TRADESYNC_LOG_LEVEL": "debug"}):
            settings = get_settings()
        assert settings.log_level == "DEBUG"

    def test_simulation_true(self):
        with patch.dict(os.environ, {"TRADESYNC_SIMULATION": "yes"}):
            settings = get_settings()
        assert settings.simulation is True

    def test_json_logs_false(self):
        with patch.dict(os.environ, {"TRADESYNC_JSON_LOGS": "0"}):
            settings = get_settings()
        assert settings.json_logs is False

    def test_unrecognized_bool_uses_default(self):
        with patch.dict(os.environ, {"TRADESYNC_SIMULATION": "maybe"}):
            settings = get_settings()
        assert settings.simulation is False

    def test_trading_mode_lowercased(self):
        with patch.dict(os.environ, {"TRADESYNC_TRADING_MODE": "MARGIN"}):
            settings = get_settings()
        assert settings.trading_mode == "margin"

    def test_decimal_overrides(self):
        env = {
            "TRADESYNC_MAX_LOSS_PER_POSITION": "0.01",
            "TRADESYNC_INVESTMENT_RATE": "0.75",
            "TRADESYNC_ENTRY_TOLERANCE": "0.001",
        }
        with patch.dict(os.environ, env):
            settings = get_settings()
        assert settings.max_loss_per_position == Decimal("0.01")
        assert settings.investment_rate == Decimal("0.75")
        assert settings.entry_tolerance == Decimal("0.001")

    def test_instruments_path(self):
        with patch.dict(os.environ, {"TRADESYNC_INSTRUMENTS": "/etc/tradesync/pairs.yaml"}):
            settings = get_settings()
        assert settings.instruments_path == Path("/etc/tradesync/pairs.yaml")

    def test_invalid_number_raises(self):
        with patch.dict(os.environ, {"TRADESYNC_MAX_LOSS_PER_POSITION": "lots"}):
            with pytest.raises(ConfigurationError, match="TRADESYNC_MAX_LOSS_PER_POSITION"):
                get_settings()


class TestValidate:
    def test_defaults_valid(self):
        TradeSyncSettings().validate()

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError, match="trading mode"):
            TradeSyncSettings(trading_mode="futures").validate()

    @pytest.mark.parametrize("value", ["0", "1.5", "-0.1"])
    def test_max_loss_out_of_range(self, value):
        with pytest.raises(ConfigurationError):
            TradeSyncSettings(max_loss_per_position=Decimal(value)).validate()

    def test_investment_rate_out_of_range(self):
        with pytest.raises(ConfigurationError):
            TradeSyncSettings(investment_rate=Decimal("2")).validate()

    def test_negative_tolerance(self):
        with pytest.raises(ConfigurationError):
            TradeSyncSettings(exit_tolerance=Decimal("-0.01")).validate()


class TestFrozen:
    def test_settings_are_immutable(self):
        settings = TradeSyncSettings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.simulation = True
