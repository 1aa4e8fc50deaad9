"""Invoice and checkout schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from hotelops.core.clock import ensure_aware
from hotelops.domain.enums import CheckoutStep, PaymentStatus
from hotelops.schemas.booking import BookingSnapshot


class RoomCharges(BaseModel):
    price_per_night: Decimal
    number_of_nights: int
    subtotal: Decimal


class ServiceCharge(BaseModel):
    service_request_id: str | None = None
    service_type: str
    description: str | None = None
    quantity: int = 1
    unit_price: Decimal
    total: Decimal


class InvoiceSummary(BaseModel):
    room_charges_total: Decimal
    service_charges_total: Decimal
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal


class InvoiceSnapshot(BaseModel):
    """Invoice as read from the backend."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_number: str
    booking_id: str
    room_charges: RoomCharges
    service_charges: list[ServiceCharge] = []
    summary: InvoiceSummary
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    created_at: datetime | None = None

    @field_validator("created_at", mode="after")
    @classmethod
    def aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v


class CheckoutStateResponse(BaseModel):
    """Where a checked-in stay stands in the checkout flow."""

    booking: BookingSnapshot
    invoice: InvoiceSnapshot | None = None
    step: CheckoutStep
    outstanding: Decimal
    currency: str
