"""Call, transaction and call-action schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from workflow import call_states
from workflow.timer import to_local_naive

CallStatusName = Literal["new", "in_progress", "called", "unattended", "callback", "completed"]
CallTypeName = Literal["confirmation", "promo"]

Money = Decimal


class CallCreate(BaseModel):
    date: datetime
    customer_name: str
    phone: str
    awb: Optional[str] = None
    order_sku: str
    quantity: int = Field(default=1, ge=1)
    current_price: Money = Field(ge=0, max_digits=10, decimal_places=2)
    shipping_fee: Optional[Money] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    address: Optional[str] = None
    call_type: CallTypeName = "confirmation"
    agent_id: Optional[UUID] = None

    @field_validator("customer_name", "phone", "order_sku")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def _local_date(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class CallUpdate(BaseModel):
    """Partial edit of intake fields. Status moves only through call actions."""

    date: Optional[datetime] = None
    customer_name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    awb: Optional[str] = None
    order_sku: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, ge=1)
    current_price: Optional[Money] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    shipping_fee: Optional[Money] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    address: Optional[str] = None
    call_type: Optional[CallTypeName] = None
    call_remarks: Optional[str] = None

    # Omitted means unchanged; an explicit null is rejected for NOT NULL columns
    @field_validator("date", "customer_name", "phone", "order_sku", "quantity", "current_price", "call_type")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("customer_name", "phone", "order_sku")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def _local_date(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class TransactionCreate(CallCreate):
    """A manually entered order; a new SKU/price records it as an upsell."""

    new_order_sku: Optional[str] = None
    new_price: Optional[Money] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    call_remarks: Optional[str] = None


class AssignRequest(BaseModel):
    agent_id: Optional[UUID] = None


class CallActionRequest(BaseModel):
    """Remarks and the client timer reading, sent with End/Unattended/Callback."""

    remarks: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)


class UpsellRequest(BaseModel):
    new_sku: str = Field(min_length=1)
    new_price: Optional[Money] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class NoteRequest(BaseModel):
    notes: Optional[str] = None


class CallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: datetime
    customer_name: str
    phone: str
    awb: Optional[str] = None
    order_sku: str
    quantity: int
    current_price: Money
    shipping_fee: Optional[Money] = None
    address: Optional[str] = None
    status: CallStatusName
    call_type: CallTypeName
    agent_id: Optional[UUID] = None
    call_started_at: Optional[datetime] = None
    call_ended_at: Optional[datetime] = None
    call_duration: Optional[int] = None
    call_remarks: Optional[str] = None
    original_order_sku: Optional[str] = None
    original_price: Optional[Money] = None
    new_order_sku: Optional[str] = None
    new_price: Optional[Money] = None
    revenue: Optional[Money] = None
    is_upsell: bool
    order_confirmed: bool
    ordered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def status_label(self) -> str:
        return call_states.status_label(self.status)

    @computed_field
    @property
    def order_label(self) -> Optional[str]:
        return call_states.order_label(self)


class CallHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    call_id: UUID
    agent_id: Optional[UUID] = None
    action: str
    notes: Optional[str] = None
    created_at: datetime
