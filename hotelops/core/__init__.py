"""Core utilities: errors, clock, idempotency and security."""

from hotelops.core.clock import Clock, FixedClock, system_clock
from hotelops.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    Conflict,
    ForbiddenTransition,
    NotFoundError,
    OverpaymentRejected,
    PaymentDeclined,
    PaymentRequired,
    PreconditionFailed,
    UpstreamUnavailable,
    ValidationError,
)

__all__ = [
    "Clock",
    "FixedClock",
    "system_clock",
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "Conflict",
    "ForbiddenTransition",
    "NotFoundError",
    "OverpaymentRejected",
    "PaymentDeclined",
    "PaymentRequired",
    "PreconditionFailed",
    "UpstreamUnavailable",
    "ValidationError",
]
