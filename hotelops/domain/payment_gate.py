"""Payment gate: outstanding balance, payment application and settlement.

Functions accept any booking snapshot exposing ``status``, ``total_amount``
and ``total_paid``; room and facility bookings share the same rules.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from hotelops.core.exceptions import OverpaymentRejected, PaymentRequired, PreconditionFailed
from hotelops.domain.enums import TERMINAL_STATUSES, PaymentMethod, PaymentStatus
from hotelops.utils.money import ZERO, to_money


class Payable(Protocol):
    status: str
    total_amount: Decimal
    total_paid: Decimal


@dataclass(frozen=True)
class PaymentApplication:
    """Ledger totals after a payment is accepted."""

    amount: Decimal
    method: PaymentMethod
    total_paid: Decimal
    outstanding: Decimal
    payment_status: PaymentStatus


def outstanding_balance(booking: Payable) -> Decimal:
    return to_money(booking.total_amount) - to_money(booking.total_paid)


def is_settled(booking: Payable) -> bool:
    return outstanding_balance(booking) <= 0


def payment_status_for(total_amount: Decimal, total_paid: Decimal) -> PaymentStatus:
    """Derive payment status from the ledger totals."""
    if total_paid <= 0:
        return PaymentStatus.UNPAID
    if total_paid >= total_amount:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def apply_payment(
    booking: Payable,
    amount: Decimal,
    method: PaymentMethod | str,
    cash_confirmed: bool = False,
) -> PaymentApplication:
    """Validate a payment against the booking and compute the new totals.

    Raises:
        PreconditionFailed: Booking is closed, or cash was not confirmed by staff
        OverpaymentRejected: Amount is not positive or exceeds the outstanding balance
    """
    method = PaymentMethod(method)
    status = booking.status.value if hasattr(booking.status, "value") else booking.status
    if status in TERMINAL_STATUSES:
        raise PreconditionFailed(f"Cannot record a payment on a {status} booking")
    if method == PaymentMethod.CASH and not cash_confirmed:
        raise PreconditionFailed("Cash payment must be confirmed as received before it is recorded")

    amount = to_money(amount)
    outstanding = outstanding_balance(booking)
    if amount <= 0 or amount > outstanding:
        raise OverpaymentRejected(amount, max(outstanding, ZERO))

    total_paid = to_money(booking.total_paid) + amount
    total_amount = to_money(booking.total_amount)
    return PaymentApplication(
        amount=amount,
        method=method,
        total_paid=total_paid,
        outstanding=total_amount - total_paid,
        payment_status=payment_status_for(total_amount, total_paid),
    )


def require_settled_or_raise(booking: Payable) -> None:
    """Raise PaymentRequired carrying the balance if anything is outstanding."""
    outstanding = outstanding_balance(booking)
    if outstanding > 0:
        raise PaymentRequired(outstanding)
