"""Room checkout flow service."""

import logging

from hotelops.backends.base import HotelBackend
from hotelops.config import settings
from hotelops.core.exceptions import NotFoundError, PreconditionFailed
from hotelops.core.permissions import Actor, Permission
from hotelops.domain.checkout_flow import checkout_step
from hotelops.domain.enums import BookingKind, BookingStatus, CheckoutStep, PaymentStatus
from hotelops.domain.payment_gate import outstanding_balance, require_settled_or_raise
from hotelops.schemas.booking import BookingSnapshot, TransitionRequest
from hotelops.schemas.invoice import CheckoutStateResponse, InvoiceSnapshot
from hotelops.services.lifecycle_service import BookingLifecycle
from hotelops.utils.money import ZERO

logger = logging.getLogger(__name__)


class CheckoutService:
    """Generate invoice, collect payment, mark paid, check out."""

    def __init__(self, backend: HotelBackend, lifecycle: BookingLifecycle):
        self.backend = backend
        self.lifecycle = lifecycle

    async def _booking(self, booking_id: str, actor: Actor) -> BookingSnapshot:
        return await self.lifecycle.get(BookingKind.ROOM, booking_id, actor)

    async def state(self, booking_id: str, actor: Actor) -> CheckoutStateResponse:
        """Current step, derived from stored booking and invoice state."""
        booking = await self._booking(booking_id, actor)
        invoice = await self.backend.get_invoice(booking_id)
        return CheckoutStateResponse(
            booking=booking,
            invoice=invoice,
            step=checkout_step(booking, invoice),
            outstanding=max(outstanding_balance(booking), ZERO),
            currency=settings.currency,
        )

    async def get_invoice(self, booking_id: str, actor: Actor) -> InvoiceSnapshot:
        await self._booking(booking_id, actor)
        invoice = await self.backend.get_invoice(booking_id)
        if invoice is None:
            raise NotFoundError("Invoice for booking", booking_id)
        return invoice

    async def generate_invoice(self, booking_id: str, actor: Actor) -> InvoiceSnapshot:
        """Create the stay invoice; a second call returns the first invoice."""
        actor.require(Permission.MANAGE_INVOICES)
        booking = await self._booking(booking_id, actor)

        existing = await self.backend.get_invoice(booking_id)
        if existing is not None:
            return existing
        if booking.status != BookingStatus.CHECKED_IN.value:
            raise PreconditionFailed(
                f"An invoice can only be generated for a checked-in booking (status is {booking.status})"
            )

        invoice = await self.backend.generate_invoice(
            booking_id, settings.invoice_tax_percent, booking.version
        )
        logger.info(
            f"Invoice {invoice.invoice_number} for booking {booking_id}: "
            f"grand total {invoice.summary.grand_total}"
        )
        return invoice

    async def mark_invoice_paid(self, booking_id: str, actor: Actor) -> InvoiceSnapshot:
        """Flip the invoice to paid once the booking balance is settled."""
        actor.require(Permission.MANAGE_INVOICES)
        booking = await self._booking(booking_id, actor)
        invoice = await self.backend.get_invoice(booking_id)
        if invoice is None:
            raise NotFoundError("Invoice for booking", booking_id)
        if invoice.payment_status == PaymentStatus.PAID:
            return invoice

        require_settled_or_raise(booking)
        invoice = await self.backend.update_invoice_payment_status(booking_id, PaymentStatus.PAID)
        logger.info(f"Invoice {invoice.invoice_number} marked paid by {actor.id}")
        return invoice

    async def complete(
        self,
        booking_id: str,
        actor: Actor,
        idempotency_key: str | None = None,
    ) -> CheckoutStateResponse:
        """Run the final check-out step."""
        state = await self.state(booking_id, actor)
        if state.step == CheckoutStep.DONE:
            return state
        if state.step == CheckoutStep.COLLECT_PAYMENT:
            require_settled_or_raise(state.booking)
        if state.step != CheckoutStep.CHECK_OUT:
            raise PreconditionFailed(f"Checkout cannot finish yet; next step is '{state.step.value}'")

        await self.lifecycle.transition(
            BookingKind.ROOM,
            booking_id,
            TransitionRequest(target=BookingStatus.COMPLETED.value, expected_version=state.booking.version),
            actor,
            idempotency_key=idempotency_key,
        )
        return await self.state(booking_id, actor)
