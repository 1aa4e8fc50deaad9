"""SQL persistence backend.

Owns booking data in a relational database through SQLAlchemy's async ORM.
Version checks are single ``UPDATE ... WHERE version = :expected`` statements
so two writers racing on the same snapshot cannot both succeed.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from hotelops.backends.base import HotelBackend
from hotelops.core.clock import Clock, system_clock, to_utc
from hotelops.core.exceptions import Conflict, NotFoundError, UpstreamUnavailable
from hotelops.domain.cancellation_policy import stay_nights
from hotelops.domain.checkout_flow import invoice_totals
from hotelops.domain.enums import BookingKind, PaymentStatus, ServiceRequestStatus
from hotelops.domain.payment_gate import payment_status_for
from hotelops.models import Booking, Facility, FacilityBooking, Invoice, Payment, Room, ServiceRequest
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
from hotelops.utils.invoice_number import generate_invoice_number
from hotelops.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

# Timestamp column stamped when a booking enters each status
STATUS_TIMESTAMPS = {
    "confirmed": "confirmed_at",
    "checkedin": "checked_in_at",
    "in_use": "in_use_at",
    "completed": "checked_out_at",
    "cancelled": "cancelled_at",
}


class SqlBackend(HotelBackend):
    """Backend over an async SQLAlchemy session.

    Every write commits before returning; a failed write is rolled back.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    @asynccontextmanager
    async def _unit_of_work(self, commit: bool = True) -> AsyncIterator[None]:
        try:
            yield
            if commit:
                await self.db.commit()
        except OperationalError as e:
            await self.db.rollback()
            logger.error(f"Database operation failed: {e}")
            raise UpstreamUnavailable("database", str(e.orig))
        except Exception:
            if commit:
                await self.db.rollback()
            raise

    async def _get(self, model: type, obj_id: str, resource: str) -> Any:
        result = await self.db.execute(
            select(model).where(model.id == obj_id).execution_options(populate_existing=True)
        )
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(resource, obj_id)
        return obj

    async def _compare_and_set(
        self,
        model: type,
        obj_id: str,
        expected_version: int,
        values: dict[str, Any],
        resource: str,
    ) -> Any:
        """Apply ``values`` only if the row is still at ``expected_version``."""
        result = await self.db.execute(
            update(model)
            .where(model.id == obj_id, model.version == expected_version)
            .values(version=model.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await self.db.execute(select(model.version).where(model.id == obj_id))
            current_version = current.scalar_one_or_none()
            if current_version is None:
                raise NotFoundError(resource, obj_id)
            logger.warning(
                f"Stale write on {resource} {obj_id}: expected v{expected_version}, "
                f"stored v{current_version}"
            )
            raise Conflict(resource, current_version=current_version)
        return await self._get(model, obj_id, resource)

    @staticmethod
    def _model_for(kind: BookingKind) -> tuple[type, str]:
        if BookingKind(kind) == BookingKind.FACILITY:
            return FacilityBooking, "Facility booking"
        return Booking, "Booking"

    @staticmethod
    def _snapshot(obj: Booking | FacilityBooking) -> AnyBooking:
        if isinstance(obj, FacilityBooking):
            return FacilityBookingSnapshot.model_validate(obj)
        return BookingSnapshot.model_validate(obj)

    # Bookings

    async def fetch_booking(self, booking_id: str) -> BookingSnapshot:
        async with self._unit_of_work(commit=False):
            return self._snapshot(await self._get(Booking, booking_id, "Booking"))

    async def fetch_facility_booking(self, booking_id: str) -> FacilityBookingSnapshot:
        async with self._unit_of_work(commit=False):
            return self._snapshot(await self._get(FacilityBooking, booking_id, "Facility booking"))

    async def persist_transition(
        self,
        kind: BookingKind,
        booking_id: str,
        target: str,
        payload: TransitionPayload,
        expected_version: int,
    ) -> AnyBooking:
        model, resource = self._model_for(kind)
        values: dict[str, Any] = {"status": target}
        column = STATUS_TIMESTAMPS.get(target)
        if column:
            values[column] = to_utc(payload.timestamp or self.clock.now())
        if target == "cancelled":
            values["cancellation_reason"] = payload.cancellation_reason
            if payload.cancellation_penalty is not None:
                values["cancellation_penalty"] = to_money(payload.cancellation_penalty)

        async with self._unit_of_work():
            obj = await self._compare_and_set(model, booking_id, expected_version, values, resource)
        return self._snapshot(obj)

    async def set_additional_charges(
        self,
        booking_id: str,
        additional_charges: Decimal,
        expected_version: int,
    ) -> FacilityBookingSnapshot:
        async with self._unit_of_work():
            booking = await self._get(FacilityBooking, booking_id, "Facility booking")
            additional = to_money(additional_charges)
            total = to_money(booking.base_charge) + additional
            obj = await self._compare_and_set(
                FacilityBooking,
                booking_id,
                expected_version,
                {
                    "additional_charges": additional,
                    "total_amount": total,
                    "payment_status": payment_status_for(total, to_money(booking.total_paid)).value,
                },
                "Facility booking",
            )
        return self._snapshot(obj)

    # Pricing

    async def fetch_room_pricing(self, room_id: str) -> RoomPricing:
        async with self._unit_of_work(commit=False):
            room = await self._get(Room, room_id, "Room")
            return RoomPricing(room_id=room.id, price_per_night=room.price_per_night)

    async def fetch_facility_pricing(self, facility_id: str) -> FacilityPricing:
        async with self._unit_of_work(commit=False):
            facility = await self._get(Facility, facility_id, "Facility")
            return FacilityPricing(
                facility_id=facility.id,
                price_per_hour=facility.price_per_hour,
                price_per_day=facility.price_per_day,
            )

    # Payments

    async def record_payment(
        self,
        kind: BookingKind,
        booking_id: str,
        record: PaymentRecord,
        expected_version: int,
    ) -> AnyBooking:
        model, resource = self._model_for(kind)
        async with self._unit_of_work():
            obj = await self._compare_and_set(
                model,
                booking_id,
                expected_version,
                {
                    "total_paid": to_money(record.total_paid),
                    "payment_status": PaymentStatus(record.payment_status).value,
                },
                resource,
            )
            self.db.add(
                Payment(
                    booking_id=booking_id,
                    booking_kind=BookingKind(kind).value,
                    amount=to_money(record.amount),
                    payment_method=record.payment_method.value,
                    transaction_id=record.transaction_id,
                    notes=record.notes,
                    recorded_by=record.recorded_by,
                    created_at=to_utc(record.created_at or self.clock.now()),
                )
            )
        return self._snapshot(obj)

    async def list_payments(self, kind: BookingKind, booking_id: str) -> list[PaymentResponse]:
        async with self._unit_of_work(commit=False):
            result = await self.db.execute(
                select(Payment)
                .where(
                    Payment.booking_id == booking_id,
                    Payment.booking_kind == BookingKind(kind).value,
                )
                .order_by(Payment.created_at, Payment.id)
            )
            return [PaymentResponse.model_validate(p) for p in result.scalars().all()]

    # Invoices

    async def _find_invoice(self, booking_id: str) -> Invoice | None:
        result = await self.db.execute(select(Invoice).where(Invoice.booking_id == booking_id))
        return result.scalar_one_or_none()

    async def generate_invoice(
        self,
        booking_id: str,
        tax_percent: Decimal,
        expected_version: int,
    ) -> InvoiceSnapshot:
        async with self._unit_of_work():
            existing = await self._find_invoice(booking_id)
            if existing is not None:
                return InvoiceSnapshot.model_validate(existing)

            booking = await self._get(Booking, booking_id, "Booking")
            room = await self._get(Room, booking.room_id, "Room")
            nights = stay_nights(booking.check_in_date, booking.check_out_date)

            result = await self.db.execute(
                select(ServiceRequest)
                .where(
                    ServiceRequest.booking_id == booking_id,
                    ServiceRequest.status == ServiceRequestStatus.COMPLETED.value,
                )
                .order_by(ServiceRequest.created_at, ServiceRequest.id)
            )
            charges = []
            for request in result.scalars().all():
                unit_price = to_money(request.unit_price)
                charges.append(
                    {
                        "service_request_id": request.id,
                        "service_type": request.service_type,
                        "description": request.description,
                        "quantity": request.quantity,
                        "unit_price": str(unit_price),
                        "total": str(to_money(unit_price * request.quantity)),
                    }
                )

            totals = invoice_totals(
                room.price_per_night,
                nights,
                [Decimal(c["total"]) for c in charges],
                tax_percent,
            )
            now = to_utc(self.clock.now())
            invoice = Invoice(
                invoice_number=await generate_invoice_number(self.db, now),
                booking_id=booking_id,
                price_per_night=to_money(room.price_per_night),
                number_of_nights=nights,
                room_subtotal=totals.room_subtotal,
                service_charges=charges,
                service_charges_total=totals.service_charges_total,
                subtotal=totals.subtotal,
                tax=totals.tax,
                grand_total=totals.grand_total,
                payment_status=PaymentStatus.UNPAID.value,
                created_at=now,
                updated_at=now,
            )

            await self._compare_and_set(
                Booking,
                booking_id,
                expected_version,
                {
                    "total_amount": totals.grand_total,
                    "payment_status": payment_status_for(
                        totals.grand_total, to_money(booking.total_paid)
                    ).value,
                },
                "Booking",
            )
            self.db.add(invoice)

        logger.info(f"Generated invoice {invoice.invoice_number} for booking {booking_id}")
        return InvoiceSnapshot.model_validate(invoice)

    async def get_invoice(self, booking_id: str) -> InvoiceSnapshot | None:
        async with self._unit_of_work(commit=False):
            invoice = await self._find_invoice(booking_id)
            return InvoiceSnapshot.model_validate(invoice) if invoice else None

    async def update_invoice_payment_status(
        self,
        booking_id: str,
        payment_status: PaymentStatus,
    ) -> InvoiceSnapshot:
        async with self._unit_of_work():
            invoice = await self._find_invoice(booking_id)
            if invoice is None:
                raise NotFoundError("Invoice for booking", booking_id)
            invoice.payment_status = PaymentStatus(payment_status).value
            invoice.updated_at = to_utc(self.clock.now())
        return InvoiceSnapshot.model_validate(invoice)

    # Service requests

    async def fetch_service_request(self, request_id: str) -> ServiceRequestSnapshot:
        async with self._unit_of_work(commit=False):
            obj = await self._get(ServiceRequest, request_id, "Service request")
            return ServiceRequestSnapshot.model_validate(obj)

    async def persist_service_request_status(
        self,
        request_id: str,
        status: ServiceRequestStatus,
        assigned_to: str | None,
        expected_version: int,
        timestamp: datetime,
    ) -> ServiceRequestSnapshot:
        values: dict[str, Any] = {"status": ServiceRequestStatus(status).value}
        if assigned_to is not None:
            values["assigned_to"] = assigned_to
        if status == ServiceRequestStatus.COMPLETED:
            values["completed_at"] = to_utc(timestamp)

        async with self._unit_of_work():
            obj = await self._compare_and_set(
                ServiceRequest, request_id, expected_version, values, "Service request"
            )
        return ServiceRequestSnapshot.model_validate(obj)

    # Creation (staff walk-ins, seeding)

    async def _create(self, obj: Any, resource: str) -> Any:
        if getattr(obj, "created_at", None) is None:
            obj.created_at = to_utc(self.clock.now())
        async with self._unit_of_work():
            self.db.add(obj)
            await self.db.flush()
            obj_id = obj.id
        async with self._unit_of_work(commit=False):
            return await self._get(type(obj), obj_id, resource)

    async def create_room(self, **fields: Any) -> Room:
        return await self._create(Room(**fields), "Room")

    async def create_facility(self, **fields: Any) -> Facility:
        return await self._create(Facility(**fields), "Facility")

    async def create_booking(self, **fields: Any) -> BookingSnapshot:
        """Insert a room booking; ``check_in_date``/``check_out_date`` are stored in UTC."""
        for key in ("check_in_date", "check_out_date"):
            fields[key] = to_utc(fields[key])
        fields.setdefault("total_paid", ZERO)
        fields.setdefault(
            "payment_status",
            payment_status_for(to_money(fields["total_amount"]), to_money(fields["total_paid"])).value,
        )
        return self._snapshot(await self._create(Booking(**fields), "Booking"))

    async def create_facility_booking(self, **fields: Any) -> FacilityBookingSnapshot:
        """Insert a facility booking; the total is ``base_charge + additional_charges``."""
        for key in ("booking_date", "start_date", "end_date"):
            if fields.get(key) is not None:
                fields[key] = to_utc(fields[key])
        fields.setdefault("additional_charges", ZERO)
        fields.setdefault("total_paid", ZERO)
        fields["total_amount"] = to_money(fields["base_charge"]) + to_money(fields["additional_charges"])
        fields.setdefault(
            "payment_status",
            payment_status_for(fields["total_amount"], to_money(fields["total_paid"])).value,
        )
        return self._snapshot(await self._create(FacilityBooking(**fields), "Facility booking"))

    async def create_service_request(self, **fields: Any) -> ServiceRequestSnapshot:
        obj = await self._create(ServiceRequest(**fields), "Service request")
        return ServiceRequestSnapshot.model_validate(obj)
