"""Room checkout: invoice, payment, mark paid, check out."""

import re
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from hotelops.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PaymentRequired,
    PreconditionFailed,
)
from hotelops.domain.checkout_flow import checkout_step, invoice_totals
from hotelops.domain.enums import BookingKind, CheckoutStep, PaymentMethod, PaymentStatus
from hotelops.schemas.payment import PaymentCreate

from .conftest import GUEST, NOW, RECEPTIONIST


def stay(status="checkedin", total="16500", paid="0"):
    return SimpleNamespace(status=status, total_amount=Decimal(total), total_paid=Decimal(paid))


def invoice(status="unpaid"):
    return SimpleNamespace(payment_status=status)


class TestCheckoutStep:
    @pytest.mark.parametrize(
        "booking, inv, expected",
        [
            (stay(status="confirmed"), None, CheckoutStep.NOT_READY),
            (stay(), None, CheckoutStep.GENERATE_INVOICE),
            (stay(paid="10000"), invoice(), CheckoutStep.COLLECT_PAYMENT),
            (stay(paid="16500"), invoice(), CheckoutStep.MARK_INVOICE_PAID),
            (stay(paid="16500"), invoice("paid"), CheckoutStep.CHECK_OUT),
            (stay(status="completed", paid="16500"), invoice("paid"), CheckoutStep.DONE),
            (stay(status="cancelled"), None, CheckoutStep.CANCELLED),
        ],
    )
    def test_step_from_stored_state(self, booking, inv, expected):
        assert checkout_step(booking, inv) == expected

    def test_paid_invoice_with_new_balance_still_collects(self):
        assert checkout_step(stay(paid="15000"), invoice("paid")) == CheckoutStep.COLLECT_PAYMENT


class TestInvoiceTotals:
    def test_room_and_services(self):
        totals = invoice_totals(Decimal("5000"), 3, [Decimal("1500")])
        assert totals.room_subtotal == Decimal("15000.00")
        assert totals.service_charges_total == Decimal("1500.00")
        assert totals.grand_total == Decimal("16500.00")
        assert totals.tax == Decimal("0.00")

    def test_tax_is_rounded_half_up(self):
        totals = invoice_totals(Decimal("100.05"), 1, [], Decimal("10"))
        assert totals.tax == Decimal("10.01")
        assert totals.grand_total == Decimal("110.06")


@pytest.fixture
async def checked_in(backend, make_booking):
    booking = await make_booking(status="checkedin", check_in_date=NOW - timedelta(hours=2))
    await backend.create_service_request(
        booking_id=booking.id,
        service_type="laundry",
        description="Two shirts",
        quantity=2,
        unit_price=Decimal("750"),
        status="completed",
    )
    await backend.create_service_request(
        booking_id=booking.id,
        service_type="room_service",
        quantity=1,
        unit_price=Decimal("1000"),
        status="pending",
    )
    return booking


class TestCheckoutFlow:
    async def test_full_flow(self, checkout, payments, checked_in, backend):
        state = await checkout.state(checked_in.id, RECEPTIONIST)
        assert state.step == CheckoutStep.GENERATE_INVOICE

        inv = await checkout.generate_invoice(checked_in.id, RECEPTIONIST)
        assert re.fullmatch(r"INV-20250310-[A-Z0-9]{6}", inv.invoice_number)
        assert inv.room_charges.number_of_nights == 3
        assert [c.service_type for c in inv.service_charges] == ["laundry"]
        assert inv.summary.grand_total == Decimal("16500.00")
        assert inv.payment_status == PaymentStatus.UNPAID
        assert (await backend.fetch_booking(checked_in.id)).total_amount == Decimal("16500.00")

        again = await checkout.generate_invoice(checked_in.id, RECEPTIONIST)
        assert again.invoice_number == inv.invoice_number

        with pytest.raises(PaymentRequired) as exc:
            await checkout.mark_invoice_paid(checked_in.id, RECEPTIONIST)
        assert exc.value.outstanding == Decimal("16500.00")

        with pytest.raises(PaymentRequired):
            await checkout.complete(checked_in.id, RECEPTIONIST)

        await payments.record_payment(
            BookingKind.ROOM,
            checked_in.id,
            PaymentCreate(amount=Decimal("16500"), payment_method=PaymentMethod.CASH, cash_confirmed=True),
            RECEPTIONIST,
        )
        state = await checkout.state(checked_in.id, RECEPTIONIST)
        assert state.step == CheckoutStep.MARK_INVOICE_PAID

        with pytest.raises(PreconditionFailed):
            await checkout.complete(checked_in.id, RECEPTIONIST)

        paid = await checkout.mark_invoice_paid(checked_in.id, RECEPTIONIST)
        assert paid.payment_status == PaymentStatus.PAID

        done = await checkout.complete(checked_in.id, RECEPTIONIST)
        assert done.step == CheckoutStep.DONE
        assert done.booking.status == "completed"
        assert done.booking.checked_out_at == NOW

        assert (await checkout.complete(checked_in.id, RECEPTIONIST)).step == CheckoutStep.DONE

    async def test_guest_reads_own_state(self, checkout, checked_in):
        state = await checkout.state(checked_in.id, GUEST)
        assert state.outstanding == Decimal("15000.00")

    async def test_guest_cannot_generate_invoice(self, checkout, checked_in):
        with pytest.raises(AuthorizationError):
            await checkout.generate_invoice(checked_in.id, GUEST)

    async def test_confirmed_booking_has_no_invoice_yet(self, checkout, make_booking):
        booking = await make_booking()
        with pytest.raises(PreconditionFailed):
            await checkout.generate_invoice(booking.id, RECEPTIONIST)
        with pytest.raises(NotFoundError):
            await checkout.get_invoice(booking.id, RECEPTIONIST)

    async def test_complete_before_invoice(self, checkout, checked_in):
        with pytest.raises(PreconditionFailed):
            await checkout.complete(checked_in.id, RECEPTIONIST)
