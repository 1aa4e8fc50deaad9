"""Payment recording service.

Guests pay their own bookings by card; staff may also take cash, which
must be confirmed as received. Every payment is checked against the
outstanding balance and verified with its gateway before it is recorded.
"""

import logging
from decimal import Decimal

from hotelops.backends.base import HotelBackend
from hotelops.config import settings
from hotelops.core.clock import Clock, system_clock
from hotelops.core.exceptions import AuthorizationError, Conflict, DuplicateTransaction, PaymentDeclined
from hotelops.core.idempotency import (
    IdempotencyStore,
    generate_idempotency_key,
    get_idempotency_store,
    run_idempotent,
)
from hotelops.core.permissions import Actor, Permission
from hotelops.domain.enums import BookingKind, PaymentMethod
from hotelops.domain.payment_gate import apply_payment, is_settled, outstanding_balance
from hotelops.schemas.booking import AnyBooking, BalanceResponse
from hotelops.schemas.payment import (
    PaymentAccepted,
    PaymentCreate,
    PaymentListResponse,
    PaymentRecord,
)
from hotelops.services.gateway_service import GatewayService, gateway_service
from hotelops.utils.money import ZERO, format_money

logger = logging.getLogger(__name__)


def default_payment_note(
    method: PaymentMethod,
    amount: Decimal,
    outstanding: Decimal,
    currency: str,
) -> str:
    """Ledger note in the front desk's wording."""
    if amount < outstanding:
        return (
            f"Partial {method.value} payment of {format_money(amount, currency)} "
            f"out of {format_money(outstanding, currency)} balance"
        )
    if method == PaymentMethod.CASH:
        return "Full payment via cash at reception"
    return "Full payment via card"


class PaymentService:
    """Service for balances and payment recording."""

    def __init__(
        self,
        backend: HotelBackend,
        clock: Clock = system_clock,
        idempotency: IdempotencyStore | None = None,
        gateways: GatewayService = gateway_service,
    ):
        self.backend = backend
        self.clock = clock
        self.idempotency = idempotency or get_idempotency_store()
        self.gateways = gateways

    async def _get(self, kind: BookingKind, booking_id: str, actor: Actor) -> AnyBooking:
        booking = await self.backend.fetch(kind, booking_id)
        actor.require_booking_access(booking.guest_id)
        return booking

    async def balance(self, kind: BookingKind, booking_id: str, actor: Actor) -> BalanceResponse:
        booking = await self._get(kind, booking_id, actor)
        return BalanceResponse(
            booking_id=booking.id,
            total_amount=booking.total_amount,
            total_paid=booking.total_paid,
            outstanding=max(outstanding_balance(booking), ZERO),
            payment_status=booking.payment_status,
            settled=is_settled(booking),
            currency=settings.currency,
        )

    async def list_payments(
        self,
        kind: BookingKind,
        booking_id: str,
        actor: Actor,
    ) -> PaymentListResponse:
        booking = await self._get(kind, booking_id, actor)
        items = await self.backend.list_payments(kind, booking_id)
        return PaymentListResponse(items=items, total_paid=booking.total_paid)

    async def record_payment(
        self,
        kind: BookingKind,
        booking_id: str,
        data: PaymentCreate,
        actor: Actor,
        idempotency_key: str | None = None,
        expected_version: int | None = None,
    ) -> PaymentAccepted:
        """Record a payment against a booking.

        Raises:
            AuthorizationError: Guest paying cash or paying someone else's booking
            PreconditionFailed: Booking closed, or cash not confirmed
            OverpaymentRejected: Amount not positive or above the balance
            PaymentDeclined: Gateway did not verify the payment
            DuplicateTransaction: Card transaction already recorded on the booking
            Conflict: Booking changed since it was read
        """
        key = None
        if idempotency_key:
            key = generate_idempotency_key(
                "payment_record",
                booking_id,
                {"kind": BookingKind(kind).value, "actor": actor.id, "token": idempotency_key},
            )
        return await run_idempotent(
            self.idempotency,
            key,
            lambda: self._record(kind, booking_id, data, actor, expected_version),
        )

    async def _record(
        self,
        kind: BookingKind,
        booking_id: str,
        data: PaymentCreate,
        actor: Actor,
        expected_version: int | None,
    ) -> PaymentAccepted:
        kind = BookingKind(kind)
        booking = await self._get(kind, booking_id, actor)

        if data.payment_method == PaymentMethod.CASH:
            if not actor.is_staff:
                raise AuthorizationError("Guests can pay by card only; cash is taken at reception")
            actor.require(Permission.RECORD_CASH_PAYMENT)
        else:
            actor.require(Permission.RECORD_CARD_PAYMENT)

        if expected_version is not None and expected_version != booking.version:
            raise Conflict(current_version=booking.version)

        outstanding = outstanding_balance(booking)
        application = apply_payment(booking, data.amount, data.payment_method, data.cash_confirmed)

        if data.payment_method == PaymentMethod.CARD and data.transaction_id:
            # Cash rows share one reference per booking; card references must not repeat
            recorded = await self.backend.list_payments(kind, booking_id)
            if any(p.transaction_id == data.transaction_id for p in recorded):
                logger.warning(
                    f"Card transaction {data.transaction_id} already recorded on {booking_id}; rejected"
                )
                raise DuplicateTransaction(data.transaction_id, booking_id)

        result = await self.gateways.verify_payment(
            data.payment_method.value,
            transaction_id=data.transaction_id,
            amount=application.amount,
            currency=settings.currency,
            reference_id=booking_id,
            confirmed=data.cash_confirmed,
        )
        if not result.success:
            logger.warning(
                f"{data.payment_method.value} payment of {application.amount} on {booking_id} "
                f"declined: {result.error_message}"
            )
            raise PaymentDeclined(result.error_message or "Payment could not be verified")

        record = PaymentRecord(
            amount=application.amount,
            payment_method=application.method,
            transaction_id=result.transaction_id,
            notes=data.notes
            or default_payment_note(application.method, application.amount, outstanding, settings.currency),
            recorded_by=actor.id,
            total_paid=application.total_paid,
            payment_status=application.payment_status,
            created_at=self.clock.now(),
        )
        updated = await self.backend.record_payment(kind, booking_id, record, booking.version)

        logger.info(
            f"Recorded {application.method.value} payment of {application.amount} on "
            f"{kind.value} booking {booking_id} by {actor.id}; outstanding {application.outstanding}"
        )
        return PaymentAccepted(
            booking=updated,
            amount=application.amount,
            outstanding=outstanding_balance(updated),
            payment_status=updated.payment_status,
        )
