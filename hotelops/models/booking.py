"""Booking-related database models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hotelops.database import Base
from hotelops.models.hotel import new_id


class _BookingColumns:
    """Columns shared by room and facility bookings."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    guest_id: Mapped[str | None] = mapped_column(String(36), index=True)  # None for walk-ins

    # Walk-in customer
    customer_name: Mapped[str | None] = mapped_column(String(200))
    customer_phone: Mapped[str | None] = mapped_column(String(30))
    customer_email: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[str | None] = mapped_column(String(36))  # staff user for walk-ins

    # Ledger
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(
        String(20), default="unpaid"
    )  # unpaid, partially_paid, paid

    # Cancellation
    cancellation_penalty: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    cancellation_reason: Mapped[str | None] = mapped_column(Text)

    # Optimistic concurrency token, bumped on every write
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def customer_details(self) -> dict | None:
        if not self.customer_name:
            return None
        return {
            "name": self.customer_name,
            "phone": self.customer_phone,
            "email": self.customer_email,
        }


class Booking(_BookingColumns, Base):
    """Room booking."""

    __tablename__ = "bookings"

    room_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rooms.id"), nullable=False, index=True
    )
    check_in_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    check_out_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, confirmed, checkedin, completed, cancelled
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class FacilityBooking(_BookingColumns, Base):
    """Public facility booking, hourly or daily."""

    __tablename__ = "facility_bookings"

    facility_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("facilities.id"), nullable=False, index=True
    )
    booking_type: Mapped[str] = mapped_column(String(10), nullable=False)  # hourly, daily

    # Hourly window
    booking_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    start_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    end_time: Mapped[str | None] = mapped_column(String(5))

    # Daily window
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    base_charge: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    additional_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, confirmed, in_use, completed, cancelled
    in_use_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
