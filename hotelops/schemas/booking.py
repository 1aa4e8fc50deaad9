"""Booking-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hotelops.core.clock import ensure_aware
from hotelops.domain.enums import BookingKind, FacilityBookingType, PaymentStatus
from hotelops.utils.money import ZERO, to_money


class CustomerDetails(BaseModel):
    """Walk-in customer identity."""

    name: str
    phone: str | None = None
    email: str | None = None


class _Snapshot(BaseModel):
    """Fields shared by room and facility booking snapshots."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    hotel_id: str | None = None
    guest_id: str | None = None
    customer_details: CustomerDetails | None = None
    created_by: str | None = None

    status: str
    total_amount: Decimal
    total_paid: Decimal = ZERO
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    cancellation_penalty: Decimal | None = None
    cancellation_reason: str | None = None

    version: int = 1

    created_at: datetime | None = None
    confirmed_at: datetime | None = None
    checked_out_at: datetime | None = None
    cancelled_at: datetime | None = None

    @field_validator("total_amount", "total_paid", "cancellation_penalty", mode="before")
    @classmethod
    def quantize_money(cls, v: Any) -> Any:
        if v is None:
            return v
        return to_money(v)

    @field_validator("created_at", "confirmed_at", "checked_out_at", "cancelled_at", mode="after")
    @classmethod
    def aware_timestamps(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v


class BookingSnapshot(_Snapshot):
    """Room booking as read from the backend."""

    kind: BookingKind = BookingKind.ROOM
    room_id: str
    check_in_date: datetime
    check_out_date: datetime
    checked_in_at: datetime | None = None

    @field_validator("check_in_date", "check_out_date", "checked_in_at", mode="after")
    @classmethod
    def aware_dates(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v

    @property
    def start(self) -> datetime:
        return self.check_in_date


class FacilityBookingSnapshot(_Snapshot):
    """Facility booking as read from the backend."""

    kind: BookingKind = BookingKind.FACILITY
    facility_id: str
    booking_type: FacilityBookingType
    booking_date: datetime | None = None
    start_time: str | None = None
    end_time: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    base_charge: Decimal = ZERO
    additional_charges: Decimal = ZERO
    in_use_at: datetime | None = None

    @field_validator("base_charge", "additional_charges", mode="before")
    @classmethod
    def quantize_charges(cls, v: Any) -> Any:
        return to_money(v if v is not None else 0)

    @field_validator("booking_date", "start_date", "end_date", "in_use_at", mode="after")
    @classmethod
    def aware_dates(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v

    @property
    def start(self) -> datetime | None:
        """Start of the booked window: booking date when hourly, start date when daily."""
        if self.booking_type == FacilityBookingType.HOURLY:
            return self.booking_date
        return self.start_date


AnyBooking = BookingSnapshot | FacilityBookingSnapshot


class TransitionRequest(BaseModel):
    """Schema for requesting a booking status change."""

    target: str = Field(..., min_length=1, max_length=20)
    cancellation_reason: str | None = Field(None, max_length=500)
    penalty_override: Decimal | None = Field(None, ge=0)
    additional_charges: Decimal | None = Field(None, ge=0)
    expected_version: int | None = Field(None, ge=1)


class TransitionPayload(BaseModel):
    """Fields written alongside a status change."""

    cancellation_reason: str | None = None
    cancellation_penalty: Decimal | None = None
    timestamp: datetime | None = None


class BookingDetailResponse(BaseModel):
    """Booking plus the actions the caller may take next."""

    booking: BookingSnapshot | FacilityBookingSnapshot
    allowed_transitions: list[str]
    outstanding_balance: Decimal


class PenaltyPreviewResponse(BaseModel):
    booking_id: str
    amount: Decimal
    message: str
    hours_until_start: float | None = None
    overridden: bool = False
    rate: Decimal | None = None  # nightly rate for rooms, hourly/daily rate for facilities
    currency: str
    policy: str


class BalanceResponse(BaseModel):
    booking_id: str
    total_amount: Decimal
    total_paid: Decimal
    outstanding: Decimal
    payment_status: PaymentStatus
    settled: bool
    currency: str


class RoomPricing(BaseModel):
    room_id: str
    price_per_night: Decimal

    @field_validator("price_per_night", mode="before")
    @classmethod
    def quantize(cls, v: Any) -> Any:
        return to_money(v)


class FacilityPricing(BaseModel):
    facility_id: str
    price_per_hour: Decimal | None = None
    price_per_day: Decimal | None = None
