"""Order-side schemas — instruments, venue snapshots, and desired targets.

Venue snapshots (LiveOrder, Wallet, Position) are read-only copies of
state owned by the venue. Desired targets (DesiredEntry, DesiredExit)
are produced per cycle by the strategy and discarded afterwards.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from tradesync.schemas.enums import OrderSide, OrderState, WalletKind


class Instrument(BaseModel):
    """A tradable pair, e.g. tBTCUSD = BTC quoted in USD."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, description="Venue symbol used to match orders")
    base_currency: str = Field(..., min_length=1)
    quote_currency: str = Field(default="USD", min_length=1)
    min_order_size: Decimal = Field(..., ge=0)

    def __str__(self) -> str:
        return self.symbol


class LiveOrder(BaseModel):
    """Snapshot of a single venue order. Never mutated by tradesync."""

    model_config = ConfigDict(frozen=True)

    order_id: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Signed size: >0 buys, <=0 sells")
    price: Decimal = Field(..., ge=0)
    order_type: str = Field(...)
    state: OrderState = Field(...)
    post_only: bool = Field(default=False)

    @property
    def side(self) -> OrderSide:
        return OrderSide.ENTRY if self.amount > 0 else OrderSide.EXIT

    @property
    def is_active(self) -> bool:
        return self.state == OrderState.ACTIVE


class Wallet(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str = Field(..., min_length=1)
    balance: Decimal = Field(...)
    kind: WalletKind = Field(...)


class Position(BaseModel):
    """An open margin position as reported by the venue."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Signed: >0 long, <0 short")
    base_price: Decimal = Field(default=Decimal("0"), ge=0)


class DesiredEntry(BaseModel):
    """Strategy request to open a position at entry_price, protected at stop_loss_price."""

    model_config = ConfigDict(frozen=True)

    instrument: Instrument
    entry_price: Decimal = Field(..., gt=0)
    stop_loss_price: Decimal = Field(..., ge=0)


class SizedEntry(BaseModel):
    """A DesiredEntry paired with the position size computed for this cycle."""

    model_config = ConfigDict(frozen=True)

    entry: DesiredEntry
    position_size: Decimal = Field(..., ge=0)

    @property
    def instrument(self) -> Instrument:
        return self.entry.instrument

    @property
    def entry_price(self) -> Decimal:
        return self.entry.entry_price

    @property
    def capital(self) -> Decimal:
        """Quote-currency capital committed by this entry."""
        return self.position_size * self.entry.entry_price

    @property
    def meets_minimum(self) -> bool:
        """An empty size is never placeable, whatever the instrument minimum."""
        if self.position_size <= 0:
            return False
        return self.position_size >= self.entry.instrument.min_order_size


class DesiredExit(BaseModel):
    """Strategy request to protect an open position with a sell at exit_price."""

    model_config = ConfigDict(frozen=True)

    instrument: Instrument
    exit_price: Decimal = Field(..., gt=0)
