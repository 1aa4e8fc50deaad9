"""Payment ledger and invoice models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hotelops.database import Base
from hotelops.models.hotel import new_id


class Payment(Base):
    """Accepted payment against a room or facility booking.

    Append-only; a booking's ``total_paid`` is the sum of its rows.
    """

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    booking_kind: Mapped[str] = mapped_column(String(10), nullable=False)  # room, facility
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(10), nullable=False)  # card, cash
    transaction_id: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    recorded_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Invoice(Base):
    """Room stay invoice, one per booking."""

    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    invoice_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, index=True
    )  # INV-YYYYMMDD-XXXXXX
    booking_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)

    # Room charges
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    number_of_nights: Mapped[int] = mapped_column(Integer, nullable=False)
    room_subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Completed service requests, frozen at generation time
    service_charges: Mapped[list] = mapped_column(JSON, default=list)
    service_charges_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    # Summary
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    payment_status: Mapped[str] = mapped_column(
        String(20), default="unpaid"
    )  # unpaid, partially_paid, paid

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def room_charges(self) -> dict:
        return {
            "price_per_night": self.price_per_night,
            "number_of_nights": self.number_of_nights,
            "subtotal": self.room_subtotal,
        }

    @property
    def summary(self) -> dict:
        return {
            "room_charges_total": self.room_subtotal,
            "service_charges_total": self.service_charges_total,
            "subtotal": self.subtotal,
            "tax": self.tax,
            "grand_total": self.grand_total,
        }
