"""Priced inventory: rooms and public facilities."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hotelops.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Room(Base):
    """Hotel room with its nightly rate."""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_type: Mapped[str | None] = mapped_column(String(50))  # single, double, suite, ...
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Facility(Base):
    """Bookable public facility (pool, hall, court) priced by hour and/or day."""

    __tablename__ = "facilities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price_per_hour: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    price_per_day: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
