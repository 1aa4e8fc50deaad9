"""Payment-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hotelops.core.clock import ensure_aware
from hotelops.domain.enums import BookingKind, PaymentMethod, PaymentStatus
from hotelops.schemas.booking import BookingSnapshot, FacilityBookingSnapshot


class PaymentCreate(BaseModel):
    """Schema for recording a payment.

    ``amount`` is not range-checked here; non-positive and excess amounts are
    rejected by the payment gate with a typed error.
    """

    amount: Decimal
    payment_method: PaymentMethod
    transaction_id: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=500)
    cash_confirmed: bool = False


class PaymentRecord(BaseModel):
    """Ledger row handed to the backend."""

    amount: Decimal
    payment_method: PaymentMethod
    transaction_id: str | None = None
    notes: str | None = None
    recorded_by: str | None = None
    total_paid: Decimal
    payment_status: PaymentStatus
    created_at: datetime | None = None


class PaymentResponse(BaseModel):
    """Schema for a stored payment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    booking_kind: BookingKind
    amount: Decimal
    payment_method: PaymentMethod
    transaction_id: str | None = None
    notes: str | None = None
    recorded_by: str | None = None
    created_at: datetime | None = None

    @field_validator("created_at", mode="after")
    @classmethod
    def aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v


class PaymentAccepted(BaseModel):
    """Updated booking after a payment is accepted."""

    booking: BookingSnapshot | FacilityBookingSnapshot
    amount: Decimal
    outstanding: Decimal
    payment_status: PaymentStatus


class PaymentListResponse(BaseModel):
    items: list[PaymentResponse]
    total_paid: Decimal
