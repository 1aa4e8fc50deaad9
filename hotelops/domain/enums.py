"""Closed value sets shared by the policy modules."""

from enum import Enum


class BookingKind(str, Enum):
    """Which inventory a booking reserves."""

    ROOM = "room"
    FACILITY = "facility"


class BookingStatus(str, Enum):
    """Room booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checkedin"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FacilityBookingStatus(str, Enum):
    """Facility booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_USE = "in_use"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FacilityBookingType(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"


class UserRole(str, Enum):
    """Actor roles."""

    GUEST = "guest"
    RECEPTIONIST = "receptionist"
    ADMIN = "admin"
    HOUSEKEEPING = "housekeeping"


STAFF_ROLES = frozenset({UserRole.RECEPTIONIST, UserRole.ADMIN})


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


class PaymentStatus(str, Enum):
    """Derived from total_amount / total_paid."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class ServiceRequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CheckoutStep(str, Enum):
    """Where a room booking stands in the checkout flow."""

    NOT_READY = "not_ready"
    GENERATE_INVOICE = "generate_invoice"
    COLLECT_PAYMENT = "collect_payment"
    MARK_INVOICE_PAID = "mark_invoice_paid"
    CHECK_OUT = "check_out"
    DONE = "done"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({"completed", "cancelled"})
