"""Persistence collaborator interface.

The policy services never talk to storage directly. A backend reads booking
snapshots (each carrying ``version``) and applies compare-and-set writes:
every write names the version it was computed from and raises ``Conflict``
if the stored record has moved on.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal

from hotelops.domain.enums import BookingKind, PaymentStatus, ServiceRequestStatus
from hotelops.schemas.booking import (
    AnyBooking,
    BookingSnapshot,
    FacilityBookingSnapshot,
    FacilityPricing,
    RoomPricing,
    TransitionPayload,
)
from hotelops.schemas.invoice import InvoiceSnapshot
from hotelops.schemas.payment import PaymentRecord, PaymentResponse
from hotelops.schemas.service_request import ServiceRequestSnapshot


class HotelBackend(ABC):
    """Abstract base class for booking persistence."""

    @abstractmethod
    async def fetch_booking(self, booking_id: str) -> BookingSnapshot:
        """Fetch a room booking.

        Raises:
            NotFoundError: If the booking does not exist
            UpstreamUnavailable: If the store cannot be reached
        """

    @abstractmethod
    async def fetch_facility_booking(self, booking_id: str) -> FacilityBookingSnapshot:
        """Fetch a facility booking."""

    async def fetch(self, kind: BookingKind, booking_id: str) -> AnyBooking:
        if BookingKind(kind) == BookingKind.FACILITY:
            return await self.fetch_facility_booking(booking_id)
        return await self.fetch_booking(booking_id)

    @abstractmethod
    async def persist_transition(
        self,
        kind: BookingKind,
        booking_id: str,
        target: str,
        payload: TransitionPayload,
        expected_version: int,
    ) -> AnyBooking:
        """Write a new status with its payload.

        Raises:
            Conflict: If the stored version differs from ``expected_version``
        """

    @abstractmethod
    async def set_additional_charges(
        self,
        booking_id: str,
        additional_charges: Decimal,
        expected_version: int,
    ) -> FacilityBookingSnapshot:
        """Replace a facility booking's additional charges.

        ``total_amount`` becomes ``base_charge + additional_charges``.
        """

    @abstractmethod
    async def fetch_room_pricing(self, room_id: str) -> RoomPricing:
        """Fetch a room's nightly rate."""

    @abstractmethod
    async def fetch_facility_pricing(self, facility_id: str) -> FacilityPricing:
        """Fetch a facility's hourly and daily rates."""

    @abstractmethod
    async def record_payment(
        self,
        kind: BookingKind,
        booking_id: str,
        record: PaymentRecord,
        expected_version: int,
    ) -> AnyBooking:
        """Append a payment and store the booking's new ledger totals."""

    @abstractmethod
    async def list_payments(self, kind: BookingKind, booking_id: str) -> list[PaymentResponse]:
        """Payments recorded against a booking, oldest first."""

    @abstractmethod
    async def generate_invoice(
        self,
        booking_id: str,
        tax_percent: Decimal,
        expected_version: int,
    ) -> InvoiceSnapshot:
        """Create the stay invoice, or return the existing one.

        The booking's ``total_amount`` is set to the invoice grand total.
        """

    @abstractmethod
    async def get_invoice(self, booking_id: str) -> InvoiceSnapshot | None:
        """Invoice for a room booking, or None if not generated yet."""

    @abstractmethod
    async def update_invoice_payment_status(
        self,
        booking_id: str,
        payment_status: PaymentStatus,
    ) -> InvoiceSnapshot:
        """Flip an invoice's payment status."""

    @abstractmethod
    async def fetch_service_request(self, request_id: str) -> ServiceRequestSnapshot:
        """Fetch a service request."""

    @abstractmethod
    async def persist_service_request_status(
        self,
        request_id: str,
        status: ServiceRequestStatus,
        assigned_to: str | None,
        expected_version: int,
        timestamp: datetime,
    ) -> ServiceRequestSnapshot:
        """Write a service request's new status."""

    async def close(self) -> None:
        """Release held resources."""
