"""Balance and payment endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from hotelops.api.deps import CurrentActor, ExpectedVersion, IdempotencyKey, get_payment_service
from hotelops.domain.enums import BookingKind
from hotelops.schemas.booking import BalanceResponse
from hotelops.schemas.payment import PaymentAccepted, PaymentCreate, PaymentListResponse
from hotelops.services.payment_service import PaymentService

router = APIRouter()
facility_router = APIRouter()

Payments = Annotated[PaymentService, Depends(get_payment_service)]


def _register(r: APIRouter, kind: BookingKind) -> None:
    @r.get("/{booking_id}/balance", response_model=BalanceResponse)
    async def get_balance(
        booking_id: str,
        actor: CurrentActor,
        payments: Payments,
    ) -> BalanceResponse:
        """Outstanding balance and payment status."""
        return await payments.balance(kind, booking_id, actor)

    @r.get("/{booking_id}/payments", response_model=PaymentListResponse)
    async def list_payments(
        booking_id: str,
        actor: CurrentActor,
        payments: Payments,
    ) -> PaymentListResponse:
        return await payments.list_payments(kind, booking_id, actor)

    @r.post(
        "/{booking_id}/payments",
        response_model=PaymentAccepted,
        status_code=status.HTTP_201_CREATED,
    )
    async def record_payment(
        booking_id: str,
        data: PaymentCreate,
        actor: CurrentActor,
        payments: Payments,
        expected_version: ExpectedVersion,
        idempotency_key: IdempotencyKey,
    ) -> PaymentAccepted:
        """Record a card or cash payment.

        Cash requires ``cash_confirmed: true`` and a staff caller.
        """
        return await payments.record_payment(
            kind,
            booking_id,
            data,
            actor,
            idempotency_key=idempotency_key,
            expected_version=expected_version,
        )


_register(router, BookingKind.ROOM)
_register(facility_router, BookingKind.FACILITY)
