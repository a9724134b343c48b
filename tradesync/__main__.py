"""tradesync CLI — run sync cycles and inspect engine state.

Usage:
    python -m tradesync sync --targets targets.yaml   Run a single sync cycle
    python -m tradesync position-open BTC             Print whether BTC is held
    python -m tradesync history                       List recorded portfolio values
    python -m tradesync instruments                   List the instrument universe

Settings come from TRADESYNC_* environment variables (see
tradesync.config.settings); command-line flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

import structlog

from tradesync.config.settings import TradeSyncSettings, get_settings
from tradesync.config.targets import SyncTargets
from tradesync.exceptions import ConfigurationError
from tradesync.factory import build_synchronizer, build_universe, build_venue_client
from tradesync.storage.value_store import PortfolioValueStore
from tradesync.utils.logging import configure_logging

logger = structlog.get_logger()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tradesync",
        description="tradesync — position reconciliation and sizing engine",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for portfolio value history (default: TRADESYNC_DATA_DIR or data)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: TRADESYNC_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--console-logs",
        action="store_true",
        help="Human-readable log output instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # sync
    sync = subparsers.add_parser("sync", help="Run a single sync cycle")
    sync.add_argument(
        "--targets",
        type=Path,
        required=True,
        help="YAML file with desired entries and exits",
    )
    sync.add_argument(
        "--simulate",
        action="store_true",
        help="Log order placement/cancellation without touching the venue",
    )

    # position-open
    position = subparsers.add_parser(
        "position-open", help="Print whether a currency position is open"
    )
    position.add_argument("currency", help="Currency code, e.g. BTC")

    # history
    history = subparsers.add_parser("history", help="List recorded portfolio values")
    history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of snapshots to show (default: 20)",
    )

    # instruments
    subparsers.add_parser("instruments", help="List the instrument universe")

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> TradeSyncSettings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.console_logs:
        overrides["json_logs"] = False
    if getattr(args, "simulate", False):
        overrides["simulation"] = True
    return dataclasses.replace(settings, **overrides)


async def _cmd_sync(args: argparse.Namespace, settings: TradeSyncSettings) -> int:
    """Execute one sync cycle against the venue."""
    universe = build_universe(settings)
    targets = SyncTargets.from_yaml(args.targets, universe)

    client = build_venue_client(settings)
    try:
        synchronizer = build_synchronizer(settings, market=client)
        report = await synchronizer.sync_portfolio(targets.entries, targets.exits)
    finally:
        await client.close()

    print(f"\n{'Symbol':<10} {'Side':<6} {'Outcome':<10} {'Amount':>14} {'Price':>14}  Detail")
    print("-" * 80)
    for action in report.actions:
        amount = "" if action.amount is None else str(action.amount)
        price = "" if action.price is None else str(action.price)
        detail = action.error or action.reason or action.order_id or ""
        print(
            f"{action.symbol:<10} {action.side.value:<6} {action.outcome.value:<10} "
            f"{amount:>14} {price:>14}  {detail}"
        )

    summary = report.summary()
    print(
        f"\nPlaced: {summary['placed']}, cancelled: {summary['cancelled']}, "
        f"kept: {summary['kept']}, skipped: {summary['skipped']}, failed: {summary['failed']}"
    )
    if report.snapshot is not None:
        print(f"Portfolio value: {report.snapshot.usd_value} USD")
    if report.simulated:
        print(
            f"Simulation: {summary['mutations']} venue changes recorded, "
            "no orders were placed or cancelled"
        )
    else:
        print(f"Venue changes: {summary['mutations']}")

    return 0 if report.failed_count == 0 else 1


async def _cmd_position_open(args: argparse.Namespace, settings: TradeSyncSettings) -> int:
    client = build_venue_client(settings)
    try:
        synchronizer = build_synchronizer(settings, market=client)
        is_open = await synchronizer.is_position_open(args.currency.upper())
    finally:
        await client.close()

    print(f"{args.currency.upper()}: {'open' if is_open else 'flat'}")
    return 0


def _cmd_history(args: argparse.Namespace, settings: TradeSyncSettings) -> int:
    """Print the most recent portfolio values, newest first."""
    store = PortfolioValueStore(persist_path=settings.value_store_path)
    snapshots = store.query(account_id=settings.account_id, limit=args.limit)

    if not snapshots:
        print(f"No portfolio values recorded for account {settings.account_id}")
        return 0

    print(f"\n{'Timestamp':<34} {'USD value':>18}")
    print("-" * 53)
    for snapshot in snapshots:
        print(f"{snapshot.timestamp.isoformat():<34} {str(snapshot.usd_value):>18}")
    print(f"\n{store.count(settings.account_id)} snapshots total")
    return 0


def _cmd_instruments(_args: argparse.Namespace, settings: TradeSyncSettings) -> int:
    universe = build_universe(settings)
    print(f"\nUniverse {universe.name!r} — {len(universe.instruments)} instruments\n")
    for instrument in sorted(universe.instruments, key=lambda i: i.symbol):
        print(
            f"  {instrument.symbol:<10} {instrument.base_currency}/{instrument.quote_currency}"
            f"  min {instrument.min_order_size}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        settings = _settings_from_args(args)
        configure_logging(json_output=settings.json_logs, level=settings.log_level)

        if args.command == "instruments":
            return _cmd_instruments(args, settings)
        elif args.command == "history":
            return _cmd_history(args, settings)
        elif args.command == "sync":
            return asyncio.run(_cmd_sync(args, settings))
        elif args.command == "position-open":
            return asyncio.run(_cmd_position_open(args, settings))
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e), symbol=e.symbol)
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        # missing venue credentials
        print(str(e), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
