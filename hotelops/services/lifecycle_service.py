"""Booking lifecycle service.

Validates and applies status changes for room and facility bookings: the
transition graph decides who may move a booking where, and each edge's
guard (penalty, check-in day, settlement) runs before the write.
"""

import logging
from datetime import tzinfo
from decimal import Decimal
from zoneinfo import ZoneInfo

from hotelops.backends.base import HotelBackend
from hotelops.config import settings
from hotelops.core.clock import Clock, local_date, system_clock
from hotelops.core.exceptions import (
    Conflict,
    ForbiddenTransition,
    PaymentRequired,
    PreconditionFailed,
    ValidationError,
)
from hotelops.core.idempotency import (
    IdempotencyStore,
    generate_idempotency_key,
    get_idempotency_store,
    run_idempotent,
)
from hotelops.core.permissions import Actor, Permission, has_permission
from hotelops.domain.booking_state import (
    Guard,
    allowed_transitions,
    assert_booking_transition,
    check_in_allowed,
    parse_status,
)
from hotelops.domain.cancellation_policy import (
    PenaltyQuote,
    apply_override,
    facility_penalty,
    get_policy_description,
    room_penalty,
)
from hotelops.domain.enums import BookingKind, FacilityBookingType
from hotelops.domain.payment_gate import outstanding_balance, require_settled_or_raise
from hotelops.schemas.booking import (
    AnyBooking,
    BookingDetailResponse,
    PenaltyPreviewResponse,
    TransitionPayload,
    TransitionRequest,
)
from hotelops.utils.money import ZERO

logger = logging.getLogger(__name__)


class BookingLifecycle:
    """Service for booking status transitions."""

    def __init__(
        self,
        backend: HotelBackend,
        clock: Clock = system_clock,
        idempotency: IdempotencyStore | None = None,
        tz: tzinfo | None = None,
    ):
        self.backend = backend
        self.clock = clock
        self.idempotency = idempotency or get_idempotency_store()
        self.tz = tz or ZoneInfo(settings.hotel_timezone)

    async def get(self, kind: BookingKind, booking_id: str, actor: Actor) -> AnyBooking:
        """Fetch a booking the actor is allowed to see."""
        booking = await self.backend.fetch(kind, booking_id)
        actor.require_booking_access(booking.guest_id)
        return booking

    def allowed(self, booking: AnyBooking, actor: Actor) -> list[str]:
        """Targets the actor may request from the booking's current status."""
        if not actor.is_staff and booking.guest_id != actor.id:
            return []
        return sorted(allowed_transitions(booking.kind, booking.status, actor.role))

    async def detail(self, kind: BookingKind, booking_id: str, actor: Actor) -> BookingDetailResponse:
        booking = await self.get(kind, booking_id, actor)
        return BookingDetailResponse(
            booking=booking,
            allowed_transitions=self.allowed(booking, actor),
            outstanding_balance=outstanding_balance(booking),
        )

    async def quote_penalty(self, booking: AnyBooking) -> PenaltyQuote:
        """Penalty for cancelling ``booking`` now."""
        now = self.clock.now()
        if booking.kind == BookingKind.FACILITY:
            return facility_penalty(booking.start, booking.total_amount, now)
        pricing = await self.backend.fetch_room_pricing(booking.room_id)
        return room_penalty(booking.check_in_date, booking.check_out_date, pricing.price_per_night, now)

    async def _rate(self, booking: AnyBooking) -> Decimal | None:
        if booking.kind == BookingKind.FACILITY:
            pricing = await self.backend.fetch_facility_pricing(booking.facility_id)
            if booking.booking_type == FacilityBookingType.HOURLY:
                return pricing.price_per_hour
            return pricing.price_per_day
        pricing = await self.backend.fetch_room_pricing(booking.room_id)
        return pricing.price_per_night

    async def penalty_preview(
        self,
        kind: BookingKind,
        booking_id: str,
        actor: Actor,
    ) -> PenaltyPreviewResponse:
        """Quote the cancellation penalty without cancelling.

        Pending bookings cancel for free; bookings past confirmation cannot
        be cancelled at all.
        """
        booking = await self.get(kind, booking_id, actor)
        if booking.status == "pending":
            quote = PenaltyQuote(ZERO, "no penalty, booking is not confirmed yet")
        elif booking.status == "confirmed":
            quote = await self.quote_penalty(booking)
        else:
            raise PreconditionFailed(f"A {booking.status} booking cannot be cancelled")

        return PenaltyPreviewResponse(
            booking_id=booking.id,
            amount=quote.amount,
            message=quote.message,
            hours_until_start=quote.hours_until_start,
            rate=await self._rate(booking),
            currency=settings.currency,
            policy=get_policy_description(kind),
        )

    async def transition(
        self,
        kind: BookingKind,
        booking_id: str,
        request: TransitionRequest,
        actor: Actor,
        idempotency_key: str | None = None,
    ) -> AnyBooking:
        """Move a booking to ``request.target``.

        A request carrying an idempotency key that already succeeded returns
        the stored result without writing again.

        Raises:
            ForbiddenTransition: Edge not allowed for the actor's role
            PreconditionFailed: Check-in day not reached
            PaymentRequired: Outstanding balance on check-out
            Conflict: Booking changed since ``expected_version``
        """
        key = None
        if idempotency_key:
            key = generate_idempotency_key(
                "booking_transition",
                booking_id,
                {
                    "kind": BookingKind(kind).value,
                    "target": request.target,
                    "actor": actor.id,
                    "token": idempotency_key,
                },
            )
        return await run_idempotent(
            self.idempotency, key, lambda: self._transition(kind, booking_id, request, actor)
        )

    async def _transition(
        self,
        kind: BookingKind,
        booking_id: str,
        request: TransitionRequest,
        actor: Actor,
    ) -> AnyBooking:
        kind = BookingKind(kind)
        booking = await self.backend.fetch(kind, booking_id)

        target = parse_status(kind, request.target)
        if not has_permission(actor.role, Permission.TRANSITION_BOOKING):
            # Roles with no edges in the graph, e.g. housekeeping
            logger.warning(
                f"Rejected {kind.value} booking {booking_id} {booking.status} -> {target} "
                f"by {actor.role.value} {actor.id}: role has no booking transitions"
            )
            raise ForbiddenTransition(booking.status, target, actor.role.value)
        actor.require_booking_access(booking.guest_id)

        if request.expected_version is not None and request.expected_version != booking.version:
            logger.warning(
                f"Transition on {kind.value} booking {booking_id} sent v{request.expected_version}, "
                f"stored v{booking.version}"
            )
            raise Conflict(current_version=booking.version)

        now = self.clock.now()
        payload = TransitionPayload(timestamp=now)
        try:
            guard = assert_booking_transition(kind, booking.status, target, actor.role)
            self._check_request_fields(kind, guard, request)

            if guard == Guard.PENALTY:
                quote = apply_override(await self.quote_penalty(booking), request.penalty_override)
                payload.cancellation_penalty = quote.amount
                payload.cancellation_reason = request.cancellation_reason
                logger.info(f"Cancellation penalty for {booking_id}: {quote.amount} ({quote.message})")
            elif target == "cancelled":
                payload.cancellation_reason = request.cancellation_reason
            elif guard == Guard.CHECK_IN_DAY:
                start = booking.start
                if start is None:
                    raise PreconditionFailed("Booking has no start date to check in against")
                if not check_in_allowed(start, now, self.tz):
                    raise PreconditionFailed(
                        f"Check-in is not allowed before {local_date(start, self.tz).isoformat()}"
                    )
            elif guard == Guard.SETTLED:
                if kind == BookingKind.FACILITY and request.additional_charges is not None:
                    booking = await self.backend.set_additional_charges(
                        booking_id, request.additional_charges, booking.version
                    )
                require_settled_or_raise(booking)
        except (ForbiddenTransition, PreconditionFailed, PaymentRequired, ValidationError) as e:
            logger.warning(
                f"Rejected {kind.value} booking {booking_id} {booking.status} -> {target} "
                f"by {actor.role.value} {actor.id}: {e.detail}"
            )
            raise

        updated = await self.backend.persist_transition(
            kind, booking_id, target, payload, booking.version
        )
        logger.info(
            f"{kind.value.capitalize()} booking {booking_id}: {booking.status} -> {target} "
            f"by {actor.role.value} {actor.id} (v{updated.version})"
        )
        return updated

    @staticmethod
    def _check_request_fields(kind: BookingKind, guard: Guard, request: TransitionRequest) -> None:
        if request.penalty_override is not None and guard != Guard.PENALTY:
            raise ForbiddenTransition(
                detail="A penalty override is only accepted when staff cancel a confirmed booking"
            )
        if request.additional_charges is not None and not (
            kind == BookingKind.FACILITY and guard == Guard.SETTLED
        ):
            raise ValidationError("Additional charges can only be set when checking out a facility booking")
