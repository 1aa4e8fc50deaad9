"""Booking lifecycle endpoints for room and facility bookings."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hotelops.api.deps import CurrentActor, ExpectedVersion, IdempotencyKey, get_lifecycle
from hotelops.domain.enums import BookingKind
from hotelops.schemas.booking import (
    BookingDetailResponse,
    BookingSnapshot,
    FacilityBookingSnapshot,
    PenaltyPreviewResponse,
    TransitionRequest,
)
from hotelops.services.lifecycle_service import BookingLifecycle

router = APIRouter()
facility_router = APIRouter()

Lifecycle = Annotated[BookingLifecycle, Depends(get_lifecycle)]


def _register(r: APIRouter, kind: BookingKind, snapshot: type) -> None:
    label = "room" if kind == BookingKind.ROOM else "facility"

    @r.get("/{booking_id}", response_model=BookingDetailResponse, summary=f"Get {label} booking")
    async def get_booking(
        booking_id: str,
        actor: CurrentActor,
        lifecycle: Lifecycle,
    ) -> BookingDetailResponse:
        """Booking with the transitions the caller may request next."""
        return await lifecycle.detail(kind, booking_id, actor)

    @r.post("/{booking_id}/transitions", response_model=snapshot, summary=f"Transition {label} booking")
    async def transition_booking(
        booking_id: str,
        request: TransitionRequest,
        actor: CurrentActor,
        lifecycle: Lifecycle,
        expected_version: ExpectedVersion,
        idempotency_key: IdempotencyKey,
    ):
        """Move the booking to ``target``.

        The booking version may be asserted with ``If-Match`` or
        ``expected_version``; a retried request with the same
        ``Idempotency-Key`` returns the first result.
        """
        if request.expected_version is None and expected_version is not None:
            request = request.model_copy(update={"expected_version": expected_version})
        return await lifecycle.transition(
            kind, booking_id, request, actor, idempotency_key=idempotency_key
        )

    @r.get(
        "/{booking_id}/cancellation-penalty",
        response_model=PenaltyPreviewResponse,
        summary=f"Preview {label} cancellation penalty",
    )
    async def preview_cancellation_penalty(
        booking_id: str,
        actor: CurrentActor,
        lifecycle: Lifecycle,
    ) -> PenaltyPreviewResponse:
        return await lifecycle.penalty_preview(kind, booking_id, actor)


_register(router, BookingKind.ROOM, BookingSnapshot)
_register(facility_router, BookingKind.FACILITY, FacilityBookingSnapshot)
