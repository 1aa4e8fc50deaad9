"""Shared fixtures: in-memory SQLite backend, fixed clock, actors."""

import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import UTC, datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hotelops.backends.sql import SqlBackend  # noqa: E402
from hotelops.core.clock import FixedClock  # noqa: E402
from hotelops.core.idempotency import IdempotencyStore  # noqa: E402
from hotelops.core.permissions import Actor  # noqa: E402
from hotelops.database import Base  # noqa: E402
from hotelops.domain.enums import UserRole  # noqa: E402
from hotelops.services.checkout_service import CheckoutService  # noqa: E402
from hotelops.services.lifecycle_service import BookingLifecycle  # noqa: E402
from hotelops.services.payment_service import PaymentService  # noqa: E402

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)
HOTEL = "hotel-1"

GUEST = Actor(id="guest-1", role=UserRole.GUEST)
OTHER_GUEST = Actor(id="guest-2", role=UserRole.GUEST)
RECEPTIONIST = Actor(id="staff-1", role=UserRole.RECEPTIONIST)
ADMIN = Actor(id="admin-1", role=UserRole.ADMIN)
HOUSEKEEPING = Actor(id="hk-1", role=UserRole.HOUSEKEEPING)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store(clock) -> IdempotencyStore:
    return IdempotencyStore(clock=clock)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def backend(session_factory, clock):
    async with session_factory() as session:
        yield SqlBackend(session, clock=clock)


@pytest.fixture
def lifecycle(backend, clock, store) -> BookingLifecycle:
    return BookingLifecycle(backend, clock=clock, idempotency=store, tz=UTC)


@pytest.fixture
def payments(backend, clock, store) -> PaymentService:
    return PaymentService(backend, clock=clock, idempotency=store)


@pytest.fixture
def checkout(backend, lifecycle) -> CheckoutService:
    return CheckoutService(backend, lifecycle)


@pytest.fixture
async def room(backend):
    return await backend.create_room(
        hotel_id=HOTEL, room_number="101", room_type="double", price_per_night=Decimal("5000")
    )


@pytest.fixture
async def facility(backend):
    return await backend.create_facility(
        hotel_id=HOTEL, name="Pool", price_per_hour=Decimal("1000"), price_per_day=Decimal("6000")
    )


@pytest.fixture
def make_booking(backend, room):
    """Confirmed three-night stay for GUEST starting 30h after NOW."""

    async def _make(**overrides):
        check_in = overrides.pop("check_in_date", NOW + timedelta(hours=30))
        fields = {
            "hotel_id": HOTEL,
            "room_id": room.id,
            "guest_id": GUEST.id,
            "check_in_date": check_in,
            "check_out_date": check_in + timedelta(days=3),
            "total_amount": Decimal("15000"),
            "status": "confirmed",
        }
        fields.update(overrides)
        return await backend.create_booking(**fields)

    return _make


@pytest.fixture
def make_facility_booking(backend, facility):
    """Confirmed hourly facility booking for GUEST starting 30h after NOW."""

    async def _make(**overrides):
        fields = {
            "hotel_id": HOTEL,
            "facility_id": facility.id,
            "guest_id": GUEST.id,
            "booking_type": "hourly",
            "booking_date": NOW + timedelta(hours=30),
            "start_time": "15:00",
            "end_time": "17:00",
            "base_charge": Decimal("2000"),
            "status": "confirmed",
        }
        fields.update(overrides)
        return await backend.create_facility_booking(**fields)

    return _make
