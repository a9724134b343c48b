"""Portfolio sync records — per-instrument actions, cycle reports, value snapshots.

Immutable records for tracking one sync cycle: what each reconciler
did per instrument, and the portfolio value recorded at cycle end.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradesync.schemas.enums import ActionOutcome, OrderSide


class PortfolioValueSnapshot(BaseModel):
    """USD value of an account at a point in time.

    Created once per cycle by the synchronizer and handed to the
    persistence sink. Never mutated afterward.
    """

    model_config = ConfigDict(frozen=True)

    snapshot_id: UUID = Field(default_factory=uuid4)
    account_id: str = Field(..., min_length=1)
    usd_value: Decimal = Field(...)
    timestamp: datetime = Field(...)

    @field_validator("timestamp")
    @classmethod
    def must_have_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("Timestamp must include timezone information")
        return v


class ReconcileAction(BaseModel):
    """Result of reconciling one instrument on one side.

    outcome carries the decision; reason explains SKIPPED/KEPT,
    error carries the venue message for FAILED.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(...)
    side: OrderSide = Field(...)
    outcome: ActionOutcome = Field(...)
    order_id: Optional[str] = Field(
        default=None,
        description="Placed order id, or cancelled order id for CANCELLED",
    )
    amount: Optional[Decimal] = Field(default=None)
    price: Optional[Decimal] = Field(default=None)
    reason: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)

    @property
    def mutated_venue(self) -> bool:
        return self.outcome in (
            ActionOutcome.PLACED,
            ActionOutcome.REPLACED,
            ActionOutcome.CANCELLED,
        )


class SyncReport(BaseModel):
    """Complete record of one sync_portfolio() cycle."""

    model_config = ConfigDict(frozen=True)

    cycle_id: UUID = Field(default_factory=uuid4)
    mode: str = Field(..., description="Trading mode name, e.g. spot or margin")
    simulated: bool = Field(default=False)
    started_at: datetime = Field(...)
    finished_at: Optional[datetime] = Field(default=None)
    entry_actions: list[ReconcileAction] = Field(default_factory=list)
    exit_actions: list[ReconcileAction] = Field(default_factory=list)
    snapshot: Optional[PortfolioValueSnapshot] = Field(default=None)

    @property
    def actions(self) -> list[ReconcileAction]:
        return [*self.entry_actions, *self.exit_actions]

    def count(self, outcome: ActionOutcome) -> int:
        return sum(1 for a in self.actions if a.outcome == outcome)

    @property
    def placed_count(self) -> int:
        return self.count(ActionOutcome.PLACED) + self.count(ActionOutcome.REPLACED)

    @property
    def cancelled_count(self) -> int:
        return self.count(ActionOutcome.CANCELLED) + self.count(ActionOutcome.REPLACED)

    @property
    def failed_count(self) -> int:
        return self.count(ActionOutcome.FAILED)

    @property
    def skipped_count(self) -> int:
        return self.count(ActionOutcome.SKIPPED)

    @property
    def mutation_count(self) -> int:
        """Actions that changed venue state (a replace counts once)."""
        return sum(1 for a in self.actions if a.mutated_venue)

    @property
    def duration_ms(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds() * 1000

    def summary(self) -> dict[str, object]:
        """Flat dict for structured logging."""
        return {
            "cycle_id": str(self.cycle_id),
            "mode": self.mode,
            "simulated": self.simulated,
            "placed": self.placed_count,
            "cancelled": self.cancelled_count,
            "kept": self.count(ActionOutcome.KEPT),
            "skipped": self.skipped_count,
            "failed": self.failed_count,
            "mutations": self.mutation_count,
            "portfolio_value_usd": str(self.snapshot.usd_value) if self.snapshot else None,
            "duration_ms": self.duration_ms,
        }
