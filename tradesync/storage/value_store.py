"""PortfolioValueStore — append-only storage for portfolio value snapshots.

One snapshot is recorded per sync cycle. Recording is fire-and-forget
for the caller: persistence failures are logged here and never raised.
"""

from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Protocol, runtime_checkable
from uuid import UUID

import structlog
from pydantic import ValidationError

from tradesync.schemas.portfolio import PortfolioValueSnapshot

logger = structlog.get_logger()


@runtime_checkable
class PortfolioValueSink(Protocol):
    def record_portfolio_value(
        self, account_id: str, usd_value: Decimal, timestamp: datetime
    ) -> PortfolioValueSnapshot | None:
        """Persist one value. Never raises; returns None if nothing was stored."""
        ...


class PortfolioValueStore:
    """Append-only store for PortfolioValueSnapshot history.

    Thread-safe. Indexed by snapshot_id and account_id.
    """

    def __init__(self, persist_path: Path | None = None) -> None:
        self._lock = threading.RLock()
        self._snapshots: dict[UUID, PortfolioValueSnapshot] = {}

        # Secondary index
        self._by_account: dict[str, list[UUID]] = {}

        self._persist_path = persist_path
        if persist_path and persist_path.exists():
            self._load_from_disk()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record_portfolio_value(
        self, account_id: str, usd_value: Decimal, timestamp: datetime
    ) -> PortfolioValueSnapshot | None:
        try:
            snapshot = PortfolioValueSnapshot(
                account_id=account_id, usd_value=usd_value, timestamp=timestamp,
            )
        except ValidationError as exc:
            logger.error(
                "Invalid portfolio value, not recorded",
                account_id=account_id,
                usd_value=str(usd_value),
                error=str(exc),
            )
            return None

        self.append(snapshot)
        return snapshot

    def append(self, snapshot: PortfolioValueSnapshot) -> bool:
        """Append a snapshot. Returns True if new, False if duplicate."""
        with self._lock:
            if snapshot.snapshot_id in self._snapshots:
                return False

            self._index(snapshot)

            if self._persist_path:
                self._persist_one(snapshot)

            logger.debug(
                "Portfolio value stored",
                account_id=snapshot.account_id,
                usd_value=str(snapshot.usd_value),
            )
            return True

    def _index(self, snapshot: PortfolioValueSnapshot) -> None:
        self._snapshots[snapshot.snapshot_id] = snapshot
        self._by_account.setdefault(snapshot.account_id, []).append(snapshot.snapshot_id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query(
        self,
        *,
        account_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[PortfolioValueSnapshot]:
        """Query snapshots with filters. Returns newest-first."""
        with self._lock:
            if account_id is not None:
                candidate_ids = self._by_account.get(account_id, [])
            else:
                candidate_ids = list(self._snapshots.keys())

            results: list[PortfolioValueSnapshot] = []
            for sid in candidate_ids:
                snapshot = self._snapshots[sid]
                if since and snapshot.timestamp < since:
                    continue
                if until and snapshot.timestamp > until:
                    continue
                results.append(snapshot)

            results.sort(key=lambda s: s.timestamp, reverse=True)

            if limit:
                results = results[:limit]

            return results

    def get_latest(self, account_id: str | None = None) -> PortfolioValueSnapshot | None:
        results = self.query(account_id=account_id, limit=1)
        return results[0] if results else None

    def count(self, account_id: str | None = None) -> int:
        with self._lock:
            if account_id is not None:
                return len(self._by_account.get(account_id, []))
            return len(self._snapshots)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_one(self, snapshot: PortfolioValueSnapshot) -> None:
        """Append a single snapshot to the JSON-lines file."""
        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._persist_path, "a") as f:
                f.write(snapshot.model_dump_json() + "\n")
        except OSError as exc:
            logger.error(
                "Failed to persist portfolio value",
                snapshot_id=str(snapshot.snapshot_id),
                error=str(exc),
            )

    def _load_from_disk(self) -> None:
        """Load snapshots from JSON-lines file."""
        count = 0
        try:
            with open(self._persist_path) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        snapshot = PortfolioValueSnapshot.model_validate_json(line)
                    except ValidationError as exc:
                        logger.warning("Skipping malformed portfolio value line", error=str(exc))
                        continue
                    if snapshot.snapshot_id not in self._snapshots:
                        self._index(snapshot)
                        count += 1
        except OSError as exc:
            logger.error(
                "Failed to load portfolio values from disk",
                path=str(self._persist_path),
                error=str(exc),
            )
        logger.info("Portfolio values loaded from disk", count=count)
