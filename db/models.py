"""SQLAlchemy 2.0 ORM models for the telesales CRM.

Covers 4 tables:
  - users: admins and calling agents
  - products: the SKU catalog used for upsells
  - calls: the merged call/transaction record (intake, call lifecycle, order)
  - call_history: append-only audit trail of agent actions on a call

Timestamps are naive local wall-clock values; "today" for the duplicate guard
and the dashboard means local midnight to midnight.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    UUID,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Enumerated values (stored as text, guarded by CHECK constraints)
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"


class CallStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CALLED = "called"
    UNATTENDED = "unattended"
    CALLBACK = "callback"
    COMPLETED = "completed"


class CallType(str, enum.Enum):
    CONFIRMATION = "confirmation"
    PROMO = "promo"


class HistoryAction(str, enum.Enum):
    STARTED = "started"
    ENDED = "ended"
    UNATTENDED = "unattended"
    CALLBACK = "callback"
    UPSELL_OFFERED = "upsell_offered"
    UPSELL_ACCEPTED = "upsell_accepted"
    UPSELL_DECLINED = "upsell_declined"
    ORDER_CONFIRMED = "order_confirmed"
    RESET = "reset"


def _in_check(column: str, values: type[enum.Enum]) -> str:
    return f"{column} IN (" + ", ".join(f"'{v.value}'" for v in values) + ")"


MONEY = Numeric(10, 2)


@dataclass(frozen=True)
class OrderLine:
    """The SKU, quantity and price of an order placed on a call."""

    sku: str
    quantity: int
    price: Decimal


# ===========================================================================
# Tables
# ===========================================================================


class User(Base):
    """users: admins and agents. Role gates admin-only operations."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in_check("role", UserRole), name="ck_user_role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=UserRole.AGENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    # Relationships
    calls: Mapped[list["Call"]] = relationship("Call", back_populates="agent")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class Product(Base):
    """products: catalog entries referenced by SKU from calls."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("units >= 1", name="ck_product_units"),
        CheckConstraint("price >= 0", name="ck_product_price"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sku: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    units: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )


class Call(Base):
    """calls: one customer call and the order it confirms or upsells.

    order_sku/current_price always hold the latest order. The first upsell
    snapshots the pre-upsell order into original_order_sku/original_price;
    that snapshot is never overwritten afterwards.
    ordered_at is when the latest order was placed; upsells and revenue are
    reported on that day, not the intake day.
    """

    __tablename__ = "calls"
    __table_args__ = (
        CheckConstraint(_in_check("status", CallStatus), name="ck_call_status"),
        CheckConstraint(_in_check("call_type", CallType), name="ck_call_type"),
        Index("ix_calls_phone_date", "phone", "date"),
        Index("ix_calls_agent_id", "agent_id"),
        Index("ix_calls_ordered_at", "ordered_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    awb: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_sku: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    shipping_fee: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Call management
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=CallStatus.NEW.value
    )
    call_type: Mapped[str] = mapped_column(
        Text, nullable=False, default=CallType.CONFIRMATION.value
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    call_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    call_ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    call_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    call_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Order / upsell ledger
    original_order_sku: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    new_order_sku: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    revenue: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    is_upsell: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ordered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    # Relationships
    agent: Mapped[Optional["User"]] = relationship("User", back_populates="calls")
    history: Mapped[list["CallHistory"]] = relationship(
        "CallHistory", back_populates="call", order_by="CallHistory.created_at"
    )

    # ------------------------------------------------------------------
    # Order views (Python only)
    # ------------------------------------------------------------------

    @property
    def order(self) -> Optional[OrderLine]:
        """The order placed during the call, or None if none was placed yet."""
        if not self.order_confirmed:
            return None
        return OrderLine(self.order_sku, self.quantity, self.current_price)

    @property
    def original_order(self) -> Optional[OrderLine]:
        """The pre-upsell baseline, or None if the call was never upsold."""
        if self.original_order_sku is None:
            return None
        return OrderLine(self.original_order_sku, self.quantity, self.original_price)


class CallHistory(Base):
    """call_history: append-only audit trail. Rows are never updated."""

    __tablename__ = "call_history"
    __table_args__ = (
        CheckConstraint(_in_check("action", HistoryAction), name="ck_history_action"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    call_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("calls.id"), nullable=False, index=True
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    # Relationships
    call: Mapped["Call"] = relationship("Call", back_populates="history")
