"""Cancellation penalty domain logic.

Policies:
- room: free more than 24h before check-in, one night within 24h, the full
  stay on or after check-in
- facility: free more than 24h before the booked start, 50% within 24h,
  100% on or after the start

The penalty is withheld from the refund when staff cancel a confirmed
booking. All functions take ``now`` explicitly.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from hotelops.core.clock import ensure_aware
from hotelops.core.exceptions import ValidationError
from hotelops.domain.enums import BookingKind
from hotelops.utils.money import ZERO, to_money

FREE_CANCELLATION_HOURS = 24
FACILITY_LATE_PENALTY_RATE = Decimal("0.5")

NO_PENALTY_MESSAGE = "no penalty, more than 24h before check-in"
ONE_NIGHT_MESSAGE = "1-night penalty, within 24h of check-in"
FULL_STAY_MESSAGE = "full amount, on/after check-in"


@dataclass(frozen=True)
class PenaltyQuote:
    """Computed cancellation penalty."""

    amount: Decimal
    message: str
    hours_until_start: float | None = None
    overridden: bool = False


def hours_until(start: datetime, now: datetime) -> float:
    return (ensure_aware(start) - ensure_aware(now)).total_seconds() / 3600


def stay_nights(check_in: datetime, check_out: datetime) -> int:
    """Nights charged for a stay; partial days round up, minimum one."""
    seconds = (ensure_aware(check_out) - ensure_aware(check_in)).total_seconds()
    return max(1, math.ceil(seconds / timedelta(days=1).total_seconds()))


def room_penalty(
    check_in: datetime,
    check_out: datetime,
    price_per_night: Decimal,
    now: datetime,
) -> PenaltyQuote:
    """Calculate the penalty for cancelling a confirmed room booking.

    Args:
        check_in: Booking check-in timestamp
        check_out: Booking check-out timestamp
        price_per_night: Room rate
        now: Moment of cancellation

    Returns:
        PenaltyQuote with amount, message and hours remaining
    """
    hours = hours_until(check_in, now)

    if hours > FREE_CANCELLATION_HOURS:
        return PenaltyQuote(ZERO, NO_PENALTY_MESSAGE, hours)
    if hours > 0:
        return PenaltyQuote(to_money(price_per_night), ONE_NIGHT_MESSAGE, hours)

    nights = stay_nights(check_in, check_out)
    return PenaltyQuote(
        to_money(Decimal(price_per_night) * nights),
        f"{FULL_STAY_MESSAGE} ({nights} night{'s' if nights != 1 else ''})",
        hours,
    )


def facility_penalty(
    start: datetime | None,
    total_amount: Decimal,
    now: datetime,
) -> PenaltyQuote:
    """Calculate the penalty for cancelling a confirmed facility booking.

    ``start`` is the booking date for hourly bookings and the start date for
    daily ones; a booking with neither carries no penalty.
    """
    if start is None:
        return PenaltyQuote(ZERO, "no penalty, booking has no start date")

    hours = hours_until(start, now)

    if hours > FREE_CANCELLATION_HOURS:
        return PenaltyQuote(ZERO, "no penalty, more than 24h before start", hours)
    if hours > 0:
        return PenaltyQuote(
            to_money(Decimal(total_amount) * FACILITY_LATE_PENALTY_RATE),
            "50% penalty, within 24h of start",
            hours,
        )
    return PenaltyQuote(to_money(total_amount), "full amount, on/after start", hours)


def apply_override(quote: PenaltyQuote, override: Decimal | None) -> PenaltyQuote:
    """Replace the computed amount with a staff-entered one."""
    if override is None:
        return quote
    if override < 0:
        raise ValidationError("Penalty override cannot be negative")
    return PenaltyQuote(
        to_money(override),
        f"penalty set by staff (calculated {quote.amount}: {quote.message})",
        quote.hours_until_start,
        overridden=True,
    )


def get_policy_description(kind: BookingKind) -> str:
    """Get human-readable policy description."""
    descriptions = {
        BookingKind.ROOM: (
            "Free cancellation more than 24 hours before check-in. "
            "One night is charged if cancelled within 24 hours. "
            "The full stay is charged on or after the check-in date."
        ),
        BookingKind.FACILITY: (
            "Free cancellation more than 24 hours before the booking starts. "
            "50% is charged if cancelled within 24 hours. "
            "The full amount is charged on or after the start."
        ),
    }
    return descriptions[BookingKind(kind)]
