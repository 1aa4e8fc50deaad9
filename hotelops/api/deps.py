"""API dependencies for authentication, backends and services."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotelops.backends.base import HotelBackend
from hotelops.backends.http import HttpBackend
from hotelops.backends.sql import SqlBackend
from hotelops.config import settings
from hotelops.core.clock import Clock, system_clock
from hotelops.core.exceptions import AuthenticationError, ValidationError
from hotelops.core.idempotency import IdempotencyStore, get_idempotency_store
from hotelops.core.permissions import Actor
from hotelops.core.security import verify_token
from hotelops.database import get_session_factory
from hotelops.domain.enums import UserRole
from hotelops.services.checkout_service import CheckoutService
from hotelops.services.lifecycle_service import BookingLifecycle
from hotelops.services.payment_service import PaymentService
from hotelops.services.service_request_service import ServiceRequestService

# Security scheme
security = HTTPBearer()


@lru_cache
def get_http_backend() -> HttpBackend:
    """Shared client for the remote hotel API."""
    return HttpBackend()


def get_clock() -> Clock:
    return system_clock


def get_idempotency() -> IdempotencyStore:
    return get_idempotency_store()


async def get_backend(
    clock: Annotated[Clock, Depends(get_clock)],
) -> AsyncGenerator[HotelBackend, None]:
    """Backend for the configured persistence mode."""
    if settings.backend == "http":
        yield get_http_backend()
        return

    async with get_session_factory()() as session:
        yield SqlBackend(session, clock=clock)


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """Get the caller from the bearer token's ``sub`` and ``role`` claims."""
    payload = verify_token(credentials.credentials, token_type="access")
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise AuthenticationError("Invalid token payload")
    try:
        return Actor(id=str(user_id), role=UserRole(role))
    except ValueError:
        raise AuthenticationError(f"Unknown role '{role}'")


def parse_if_match(value: str | None) -> int | None:
    """Booking version from an ``If-Match`` header (``3``, ``"3"`` or ``W/"3"``)."""
    if value is None:
        return None
    raw = value.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        version = int(raw)
    except ValueError:
        raise ValidationError(f"If-Match must carry a booking version, got '{value}'")
    if version < 1:
        raise ValidationError("If-Match version must be positive")
    return version


def get_expected_version(
    if_match: Annotated[str | None, Header(alias="If-Match")] = None,
) -> int | None:
    return parse_if_match(if_match)


def get_idempotency_key(
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key", max_length=255)] = None,
) -> str | None:
    return idempotency_key or None


def get_lifecycle(
    backend: Annotated[HotelBackend, Depends(get_backend)],
    clock: Annotated[Clock, Depends(get_clock)],
    idempotency: Annotated[IdempotencyStore, Depends(get_idempotency)],
) -> BookingLifecycle:
    return BookingLifecycle(backend, clock=clock, idempotency=idempotency)


def get_payment_service(
    backend: Annotated[HotelBackend, Depends(get_backend)],
    clock: Annotated[Clock, Depends(get_clock)],
    idempotency: Annotated[IdempotencyStore, Depends(get_idempotency)],
) -> PaymentService:
    return PaymentService(backend, clock=clock, idempotency=idempotency)


def get_checkout_service(
    backend: Annotated[HotelBackend, Depends(get_backend)],
    lifecycle: Annotated[BookingLifecycle, Depends(get_lifecycle)],
) -> CheckoutService:
    return CheckoutService(backend, lifecycle)


def get_service_request_service(
    backend: Annotated[HotelBackend, Depends(get_backend)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ServiceRequestService:
    return ServiceRequestService(backend, clock=clock)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
ExpectedVersion = Annotated[int | None, Depends(get_expected_version)]
IdempotencyKey = Annotated[str | None, Depends(get_idempotency_key)]
