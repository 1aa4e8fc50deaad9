"""Room checkout flow.

Checkout is generate invoice, collect payment, mark the invoice paid, then
check out. The current step is derived from persisted booking and invoice
state only, so an interrupted flow resumes where it stopped.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from hotelops.domain.enums import BookingStatus, CheckoutStep, PaymentStatus
from hotelops.domain.payment_gate import Payable, is_settled
from hotelops.utils.money import to_money


class InvoiceState(Protocol):
    payment_status: str


def _value(v):
    return v.value if hasattr(v, "value") else v


def checkout_step(booking: Payable, invoice: InvoiceState | None) -> CheckoutStep:
    status = _value(booking.status)

    if status == BookingStatus.COMPLETED.value:
        return CheckoutStep.DONE
    if status == BookingStatus.CANCELLED.value:
        return CheckoutStep.CANCELLED
    if status != BookingStatus.CHECKED_IN.value:
        return CheckoutStep.NOT_READY
    if invoice is None:
        return CheckoutStep.GENERATE_INVOICE
    if not is_settled(booking):
        return CheckoutStep.COLLECT_PAYMENT
    if _value(invoice.payment_status) != PaymentStatus.PAID.value:
        return CheckoutStep.MARK_INVOICE_PAID
    return CheckoutStep.CHECK_OUT


@dataclass(frozen=True)
class InvoiceTotals:
    room_subtotal: Decimal
    service_charges_total: Decimal
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal


def invoice_totals(
    price_per_night: Decimal,
    nights: int,
    service_charge_totals: list[Decimal],
    tax_percent: Decimal = Decimal("0"),
) -> InvoiceTotals:
    """Room charges plus completed service charges plus tax."""
    room_subtotal = to_money(Decimal(price_per_night) * nights)
    service_total = to_money(sum((Decimal(t) for t in service_charge_totals), Decimal("0")))
    subtotal = room_subtotal + service_total
    tax = to_money(subtotal * Decimal(tax_percent) / 100)
    return InvoiceTotals(room_subtotal, service_total, subtotal, tax, subtotal + tax)
