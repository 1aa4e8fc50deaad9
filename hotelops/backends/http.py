"""Remote hotel REST API backend.

Delegates persistence to the existing hotel API. Responses arrive wrapped in
``{"success": ..., "data": ..., "message": ...}`` with camelCase keys and
document ids (``_id``, ``__v``); both are translated here so services only
ever see snapshots. Booking versions come from ``updatedAt`` where the API
sends it, see ``_revision``.
"""

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

from hotelops.backends.base import HotelBackend
from hotelops.config import settings
from hotelops.core.exceptions import (
    AppException,
    AuthorizationError,
    Conflict,
    NotFoundError,
    PreconditionFailed,
    UpstreamUnavailable,
)
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

logger = logging.getLogger(__name__)

SERVICE_NAME = "hotel-api"

# Target status -> PATCH action segment
ROOM_ACTIONS = {
    "confirmed": "confirm",
    "cancelled": "cancel",
    "checkedin": "check-in",
    "completed": "check-out",
}
FACILITY_ACTIONS = {
    "confirmed": "confirm",
    "cancelled": "cancel",
    "in_use": "check-in",
    "completed": "check-out",
}

# The remote API calls an unpaid invoice "pending"
REMOTE_INVOICE_STATUS = {
    "pending": PaymentStatus.UNPAID,
    "unpaid": PaymentStatus.UNPAID,
    "partially_paid": PaymentStatus.PARTIALLY_PAID,
    "paid": PaymentStatus.PAID,
}

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _ref(value: Any) -> str | None:
    """Id of a reference that may arrive populated (a dict) or as a bare id."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    return str(value) if value is not None else None


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """snake_case keys, ``_id`` to ``id`` and ``__v`` to ``version``."""
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key == "_id":
            out["id"] = str(value)
        elif key == "__v":
            out["version"] = int(value)
        else:
            out[to_snake(key)] = value
    return out


def _payment_status(value: Any) -> PaymentStatus:
    if value is None:
        return PaymentStatus.UNPAID
    status = REMOTE_INVOICE_STATUS.get(str(value))
    if status is None:
        logger.warning(f"Unmapped remote payment status '{value}', treating as unpaid")
        return PaymentStatus.UNPAID
    return status


def _revision(fields: dict[str, Any]) -> int:
    """Version a remote booking is compared and sent on.

    Mongoose bumps ``__v`` only when an array field changes, so status and
    payment updates leave it untouched and two writers reading the same
    document would both pass an ``If-Match`` built from it. ``updatedAt``
    moves on every save; when the API sends it, its epoch milliseconds are
    the version. Writes are still only rejected if the remote API honours
    ``If-Match``.
    """
    updated_at = fields.get("updated_at")
    if updated_at:
        try:
            stamp = datetime.fromisoformat(str(updated_at).replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable updatedAt '{updated_at}', falling back to __v")
        else:
            return int(stamp.timestamp() * 1000)
    return int(fields.get("version", 1))


def booking_from_remote(data: dict[str, Any]) -> BookingSnapshot:
    fields = _normalize(data)
    fields["hotel_id"] = _ref(fields.pop("hotel", None)) or fields.get("hotel_id")
    fields["room_id"] = _ref(fields.pop("room", None)) or fields.get("room_id")
    fields["guest_id"] = _ref(fields.pop("guest", None)) or fields.get("guest_id")
    fields["created_by"] = _ref(fields.get("created_by"))
    fields["payment_status"] = _payment_status(fields.get("payment_status"))
    fields.setdefault("total_paid", 0)
    fields["version"] = _revision(fields)
    return BookingSnapshot.model_validate(fields)


def facility_booking_from_remote(data: dict[str, Any]) -> FacilityBookingSnapshot:
    fields = _normalize(data)
    fields["hotel_id"] = _ref(fields.pop("hotel", None)) or fields.get("hotel_id")
    fields["facility_id"] = _ref(fields.pop("facility", None)) or fields.get("facility_id")
    fields["guest_id"] = _ref(fields.pop("guest", None)) or fields.get("guest_id")
    fields["created_by"] = _ref(fields.get("created_by"))
    fields["payment_status"] = _payment_status(fields.get("payment_status"))
    fields.setdefault("total_paid", 0)
    fields["version"] = _revision(fields)
    return FacilityBookingSnapshot.model_validate(fields)


def invoice_from_remote(data: dict[str, Any]) -> InvoiceSnapshot:
    fields = _normalize(data)
    fields["booking_id"] = _ref(fields.pop("booking", None)) or fields.get("booking_id")
    fields["room_charges"] = _normalize(fields.get("room_charges") or {})
    fields["summary"] = _normalize(fields.get("summary") or {})
    charges = []
    for charge in fields.get("service_charges") or []:
        charge = _normalize(charge)
        charge["service_request_id"] = _ref(charge.pop("service_request", None))
        quantity = int(charge.get("quantity") or 1)
        if charge.get("unit_price") is None:
            charge["unit_price"] = Decimal(str(charge.get("total", 0))) / quantity
        charges.append(charge)
    fields["service_charges"] = charges
    fields["payment_status"] = _payment_status(fields.get("payment_status"))
    return InvoiceSnapshot.model_validate(fields)


def payment_from_remote(data: dict[str, Any], kind: BookingKind, booking_id: str) -> PaymentResponse:
    fields = _normalize(data)
    fields["booking_id"] = _ref(fields.pop("booking", None)) or booking_id
    fields["booking_kind"] = kind
    fields["recorded_by"] = _ref(fields.get("recorded_by"))
    return PaymentResponse.model_validate(fields)


class HttpBackend(HotelBackend):
    """Backend delegating to the hotel REST API over httpx."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        token = token or settings.hotel_api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.hotel_api_base_url,
            headers=headers,
            timeout=timeout or settings.hotel_api_timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        expected_version: int | None = None,
        resource: str = "Resource",
        resource_id: str | None = None,
    ) -> Any:
        """Send a request and return the unwrapped ``data`` payload."""
        headers = {}
        if expected_version is not None:
            headers["If-Match"] = str(expected_version)

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException:
            logger.error(f"{method} {path} timed out")
            raise UpstreamUnavailable(SERVICE_NAME, "request timed out")
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise UpstreamUnavailable(SERVICE_NAME, str(e))

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None

        if response.is_error:
            raise self._map_error(response.status_code, message, resource, resource_id)

        if isinstance(body, dict) and "success" in body:
            if not body["success"]:
                raise PreconditionFailed(message or "Request rejected by hotel API")
            return body.get("data")
        return body

    @staticmethod
    def _map_error(
        status_code: int,
        message: str | None,
        resource: str,
        resource_id: str | None,
    ) -> AppException:
        if status_code == 404:
            return NotFoundError(resource, resource_id)
        if status_code in (409, 412):
            return Conflict(resource)
        if status_code in (401, 403):
            return AuthorizationError(message or "Hotel API refused the request")
        if status_code >= 500:
            logger.error(f"Hotel API error {status_code}: {message}")
            return UpstreamUnavailable(SERVICE_NAME, message or f"HTTP {status_code}")
        return PreconditionFailed(message or f"Hotel API rejected the request (HTTP {status_code})")

    @staticmethod
    def _booking_path(kind: BookingKind, booking_id: str) -> str:
        if BookingKind(kind) == BookingKind.FACILITY:
            return f"/public-facility-bookings/{booking_id}"
        return f"/bookings/{booking_id}"

    @staticmethod
    def _payments_path(kind: BookingKind, booking_id: str) -> str:
        if BookingKind(kind) == BookingKind.FACILITY:
            return f"/payments/facility-bookings/{booking_id}/payments"
        return f"/payments/bookings/{booking_id}/payments"

    @staticmethod
    def _from_remote(kind: BookingKind, data: dict[str, Any]) -> AnyBooking:
        if BookingKind(kind) == BookingKind.FACILITY:
            return facility_booking_from_remote(data)
        return booking_from_remote(data)

    # Bookings

    async def fetch_booking(self, booking_id: str) -> BookingSnapshot:
        data = await self._request(
            "GET", self._booking_path(BookingKind.ROOM, booking_id),
            resource="Booking", resource_id=booking_id,
        )
        return booking_from_remote(data)

    async def fetch_facility_booking(self, booking_id: str) -> FacilityBookingSnapshot:
        data = await self._request(
            "GET", self._booking_path(BookingKind.FACILITY, booking_id),
            resource="Facility booking", resource_id=booking_id,
        )
        return facility_booking_from_remote(data)

    async def persist_transition(
        self,
        kind: BookingKind,
        booking_id: str,
        target: str,
        payload: TransitionPayload,
        expected_version: int,
    ) -> AnyBooking:
        actions = FACILITY_ACTIONS if BookingKind(kind) == BookingKind.FACILITY else ROOM_ACTIONS
        body: dict[str, Any] = {}
        if payload.cancellation_reason is not None:
            body["cancellationReason"] = payload.cancellation_reason
        if payload.cancellation_penalty is not None:
            body["cancellationPenalty"] = str(payload.cancellation_penalty)

        data = await self._request(
            "PATCH",
            f"{self._booking_path(kind, booking_id)}/{actions[target]}",
            json=body,
            expected_version=expected_version,
            resource="Booking",
            resource_id=booking_id,
        )
        return self._from_remote(kind, data)

    async def set_additional_charges(
        self,
        booking_id: str,
        additional_charges: Decimal,
        expected_version: int,
    ) -> FacilityBookingSnapshot:
        data = await self._request(
            "PATCH",
            self._booking_path(BookingKind.FACILITY, booking_id),
            json={"additionalCharges": str(additional_charges)},
            expected_version=expected_version,
            resource="Facility booking",
            resource_id=booking_id,
        )
        return facility_booking_from_remote(data)

    # Pricing

    async def fetch_room_pricing(self, room_id: str) -> RoomPricing:
        data = await self._request("GET", f"/rooms/{room_id}", resource="Room", resource_id=room_id)
        return RoomPricing(room_id=_ref(data) or room_id, price_per_night=data["pricePerNight"])

    async def fetch_facility_pricing(self, facility_id: str) -> FacilityPricing:
        data = await self._request(
            "GET", f"/public-facilities/{facility_id}", resource="Facility", resource_id=facility_id
        )
        return FacilityPricing(
            facility_id=_ref(data) or facility_id,
            price_per_hour=data.get("pricePerHour"),
            price_per_day=data.get("pricePerDay"),
        )

    # Payments

    async def record_payment(
        self,
        kind: BookingKind,
        booking_id: str,
        record: PaymentRecord,
        expected_version: int,
    ) -> AnyBooking:
        body: dict[str, Any] = {
            "amount": str(record.amount),
            "paymentMethod": record.payment_method.value,
        }
        if record.transaction_id:
            body["transactionId"] = record.transaction_id
        if record.notes:
            body["notes"] = record.notes
        if BookingKind(kind) == BookingKind.FACILITY:
            # Both kinds post to one route; only the ledger read is split
            body["bookingType"] = "facility"

        await self._request(
            "POST",
            f"/payments/bookings/{booking_id}/payments",
            json=body,
            expected_version=expected_version,
            resource="Booking",
            resource_id=booking_id,
        )
        return await self.fetch(kind, booking_id)

    async def list_payments(self, kind: BookingKind, booking_id: str) -> list[PaymentResponse]:
        data = await self._request(
            "GET", self._payments_path(kind, booking_id), resource="Booking", resource_id=booking_id
        )
        if isinstance(data, dict):
            data = data.get("payments", [])
        return [payment_from_remote(item, kind, booking_id) for item in data or []]

    # Invoices

    async def generate_invoice(
        self,
        booking_id: str,
        tax_percent: Decimal,
        expected_version: int,
    ) -> InvoiceSnapshot:
        # Tax is applied by the remote API's own invoice rules
        data = await self._request(
            "POST",
            f"/invoices/generate/{booking_id}",
            expected_version=expected_version,
            resource="Booking",
            resource_id=booking_id,
        )
        return invoice_from_remote(data)

    async def get_invoice(self, booking_id: str) -> InvoiceSnapshot | None:
        try:
            data = await self._request(
                "GET", f"/invoices/booking/{booking_id}", resource="Invoice", resource_id=booking_id
            )
        except NotFoundError:
            return None
        return invoice_from_remote(data) if data else None

    async def update_invoice_payment_status(
        self,
        booking_id: str,
        payment_status: PaymentStatus,
    ) -> InvoiceSnapshot:
        invoice = await self.get_invoice(booking_id)
        if invoice is None:
            raise NotFoundError("Invoice for booking", booking_id)
        status = PaymentStatus(payment_status)
        remote_status = "pending" if status == PaymentStatus.UNPAID else status.value
        data = await self._request(
            "PATCH",
            f"/invoices/{invoice.id}/payment-status",
            json={"paymentStatus": remote_status},
            resource="Invoice",
            resource_id=invoice.id,
        )
        return invoice_from_remote(data)

    # Service requests

    async def fetch_service_request(self, request_id: str) -> ServiceRequestSnapshot:
        data = await self._request(
            "GET", f"/service-requests/{request_id}",
            resource="Service request", resource_id=request_id,
        )
        return self._service_request_from_remote(data)

    async def persist_service_request_status(
        self,
        request_id: str,
        status: ServiceRequestStatus,
        assigned_to: str | None,
        expected_version: int,
        timestamp: datetime,
    ) -> ServiceRequestSnapshot:
        body: dict[str, Any] = {"status": ServiceRequestStatus(status).value}
        if assigned_to is not None:
            body["assignedTo"] = assigned_to
        data = await self._request(
            "PATCH",
            f"/service-requests/{request_id}/status",
            json=body,
            expected_version=expected_version,
            resource="Service request",
            resource_id=request_id,
        )
        return self._service_request_from_remote(data)

    @staticmethod
    def _service_request_from_remote(data: dict[str, Any]) -> ServiceRequestSnapshot:
        fields = _normalize(data)
        fields["booking_id"] = _ref(fields.pop("booking", None)) or fields.get("booking_id")
        fields["assigned_to"] = _ref(fields.get("assigned_to"))
        if fields.get("unit_price") is None and fields.get("price") is not None:
            fields["unit_price"] = fields["price"]
        return ServiceRequestSnapshot.model_validate(fields)
