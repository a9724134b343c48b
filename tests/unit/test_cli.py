"""Tests for the tradesync CLI at tradesync/__main__.py."""
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from tradesync.__main__ import main
from tradesync.storage.value_store import PortfolioValueStore

TARGETS_YAML = """\
entries:
  - symbol: tBTCUSD
    entry_price: "100"
    stop_loss_price: "90"
"""


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Keep the global structlog configuration untouched by CLI runs."""
    with patch("tradesync.__main__.configure_logging"):
        yield


def _env(tmpdir: str) -> dict[str, str]:
    return {
        "TRADESYNC_DATA_DIR": tmpdir,
        "TRADESYNC_ACCOUNT_ID": "acct-cli",
        "TRADESYNC_MAX_LOSS_PER_POSITION": "0.01",
    }


class TestInstrumentsCommand:
    def test_lists_default_universe(self, capsys):
        with patch.dict(os.environ, {}, clear=True):
            assert main(["instruments"]) == 0

        out = capsys.readouterr().out
        assert "tBTCUSD" in out
        assert "tXRPUSD" in out

    def test_bad_instruments_file(self, capsys):
        with patch.dict(os.environ, {"TRADESYNC_INSTRUMENTS": "/nonexistent.yaml"}, clear=True):
            assert main(["instruments"]) == 2
        assert "Configuration error" in capsys.readouterr().err


class TestHistoryCommand:
    def test_empty_history(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch.dict(os.environ, _env(tmpdir), clear=True):
                assert main(["history"]) == 0
        assert "No portfolio values recorded" in capsys.readouterr().out

    def test_lists_snapshots(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = PortfolioValueStore(persist_path=Path(tmpdir) / "portfolio_values.jsonl")
            store.record_portfolio_value(
                "acct-cli", Decimal("10500.25"), datetime(2026, 2, 9, tzinfo=timezone.utc),
            )
            with patch.dict(os.environ, _env(tmpdir), clear=True):
                assert main(["history", "--limit", "5"]) == 0

        out = capsys.readouterr().out
        assert "10500.25" in out
        assert "1 snapshots total" in out


class TestSyncCommand:
    def test_simulated_cycle(self, venue, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            targets = Path(tmpdir) / "targets.yaml"
            targets.write_text(TARGETS_YAML)

            with patch.dict(os.environ, _env(tmpdir), clear=True), \
                    patch("tradesync.__main__.build_venue_client", return_value=venue):
                code = main(["sync", "--targets", str(targets), "--simulate"])

        assert code == 0
        assert venue.calls == []
        assert venue.closed is True
        out = capsys.readouterr().out
        assert "PLACED" in out
        assert "Simulation: 1 venue changes recorded" in out

    def test_unknown_target_symbol(self, venue):
        with tempfile.TemporaryDirectory() as tmpdir:
            targets = Path(tmpdir) / "targets.yaml"
            targets.write_text("exits:\n  - symbol: tDOGEUSD\n    exit_price: '0.1'\n")

            with patch.dict(os.environ, _env(tmpdir), clear=True), \
                    patch("tradesync.__main__.build_venue_client", return_value=venue):
                assert main(["sync", "--targets", str(targets)]) == 2


class TestPositionOpenCommand:
    def test_reports_open_position(self, venue, capsys):
        venue.set_wallet("BTC", "0.5")
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch.dict(os.environ, _env(tmpdir), clear=True), \
                    patch("tradesync.__main__.build_venue_client", return_value=venue):
                assert main(["position-open", "btc"]) == 0

        assert "BTC: open" in capsys.readouterr().out
