"""Room checkout flow endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from hotelops.api.deps import CurrentActor, IdempotencyKey, get_checkout_service
from hotelops.schemas.invoice import CheckoutStateResponse, InvoiceSnapshot
from hotelops.services.checkout_service import CheckoutService

router = APIRouter()

Checkout = Annotated[CheckoutService, Depends(get_checkout_service)]


@router.get("/{booking_id}/checkout", response_model=CheckoutStateResponse)
async def get_checkout_state(
    booking_id: str,
    actor: CurrentActor,
    checkout: Checkout,
) -> CheckoutStateResponse:
    """Current checkout step; resumable after an interrupted session."""
    return await checkout.state(booking_id, actor)


@router.post("/{booking_id}/checkout", response_model=CheckoutStateResponse)
async def complete_checkout(
    booking_id: str,
    actor: CurrentActor,
    checkout: Checkout,
    idempotency_key: IdempotencyKey,
) -> CheckoutStateResponse:
    """Check the guest out once the invoice is paid."""
    return await checkout.complete(booking_id, actor, idempotency_key=idempotency_key)


@router.get("/{booking_id}/invoice", response_model=InvoiceSnapshot)
async def get_invoice(
    booking_id: str,
    actor: CurrentActor,
    checkout: Checkout,
) -> InvoiceSnapshot:
    return await checkout.get_invoice(booking_id, actor)


@router.post("/{booking_id}/invoice", response_model=InvoiceSnapshot, status_code=status.HTTP_201_CREATED)
async def generate_invoice(
    booking_id: str,
    actor: CurrentActor,
    checkout: Checkout,
) -> InvoiceSnapshot:
    return await checkout.generate_invoice(booking_id, actor)


@router.post("/{booking_id}/invoice/mark-paid", response_model=InvoiceSnapshot)
async def mark_invoice_paid(
    booking_id: str,
    actor: CurrentActor,
    checkout: Checkout,
) -> InvoiceSnapshot:
    return await checkout.mark_invoice_paid(booking_id, actor)
