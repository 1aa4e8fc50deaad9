"""Booking lifecycle against the SQL backend."""

from datetime import timedelta
from decimal import Decimal

import pytest

from hotelops.core.exceptions import (
    AuthorizationError,
    Conflict,
    ForbiddenTransition,
    NotFoundError,
    PaymentRequired,
    PreconditionFailed,
    ValidationError,
)
from hotelops.domain.enums import BookingKind, PaymentStatus
from hotelops.schemas.booking import TransitionPayload, TransitionRequest

from .conftest import GUEST, HOUSEKEEPING, NOW, OTHER_GUEST, RECEPTIONIST


def to(target, **fields) -> TransitionRequest:
    return TransitionRequest(target=target, **fields)


class TestConfirmAndCancel:
    async def test_staff_confirms_pending(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        updated = await lifecycle.transition(BookingKind.ROOM, booking.id, to("confirmed"), RECEPTIONIST)
        assert updated.status == "confirmed"
        assert updated.version == booking.version + 1
        assert updated.confirmed_at == NOW

    async def test_guest_cannot_confirm(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        with pytest.raises(ForbiddenTransition):
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("confirmed"), GUEST)

    async def test_guest_cancels_own_pending_without_penalty(self, lifecycle, make_booking):
        booking = await make_booking(status="pending", check_in_date=NOW + timedelta(hours=2))
        updated = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("cancelled", cancellation_reason="Plans changed"), GUEST
        )
        assert updated.status == "cancelled"
        assert updated.cancellation_penalty is None
        assert updated.cancellation_reason == "Plans changed"
        assert updated.cancelled_at == NOW

    async def test_guest_cannot_touch_another_guests_booking(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        with pytest.raises(AuthorizationError):
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("cancelled"), OTHER_GUEST)

    @pytest.mark.parametrize("target", ["confirmed", "cancelled"])
    async def test_housekeeping_has_no_booking_edges(self, lifecycle, make_booking, backend, target):
        booking = await make_booking(status="pending")
        with pytest.raises(ForbiddenTransition) as exc:
            await lifecycle.transition(BookingKind.ROOM, booking.id, to(target), HOUSEKEEPING)
        assert exc.value.code == "forbidden_transition"
        assert (await backend.fetch_booking(booking.id)).status == "pending"

    async def test_guest_cannot_cancel_confirmed(self, lifecycle, make_booking):
        booking = await make_booking()
        with pytest.raises(ForbiddenTransition) as exc:
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("cancelled"), GUEST)
        assert "contact the hotel" in exc.value.detail

    async def test_unknown_booking(self, lifecycle):
        with pytest.raises(NotFoundError):
            await lifecycle.transition(BookingKind.ROOM, "missing", to("confirmed"), RECEPTIONIST)


class TestCancellationPenalty:
    @pytest.mark.parametrize(
        "hours, expected",
        [(30, Decimal("0.00")), (10, Decimal("5000.00")), (-2, Decimal("15000.00"))],
    )
    async def test_staff_cancel_stores_penalty(self, lifecycle, make_booking, hours, expected):
        booking = await make_booking(check_in_date=NOW + timedelta(hours=hours))
        updated = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("cancelled", cancellation_reason="No show"), RECEPTIONIST
        )
        assert updated.status == "cancelled"
        assert updated.cancellation_penalty == expected
        assert updated.cancellation_reason == "No show"

    async def test_override_replaces_penalty(self, lifecycle, make_booking):
        booking = await make_booking(check_in_date=NOW + timedelta(hours=10))
        updated = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("cancelled", penalty_override=Decimal("1200")), RECEPTIONIST
        )
        assert updated.cancellation_penalty == Decimal("1200.00")

    async def test_override_on_penalty_free_edge_rejected(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        with pytest.raises(ForbiddenTransition):
            await lifecycle.transition(
                BookingKind.ROOM, booking.id, to("cancelled", penalty_override=Decimal("10")), RECEPTIONIST
            )

    async def test_preview_does_not_cancel(self, lifecycle, make_booking, backend):
        booking = await make_booking(check_in_date=NOW + timedelta(hours=10))
        preview = await lifecycle.penalty_preview(BookingKind.ROOM, booking.id, GUEST)
        assert preview.amount == Decimal("5000.00")
        assert preview.rate == Decimal("5000.00")
        assert (await backend.fetch_booking(booking.id)).status == "confirmed"

    async def test_preview_for_checked_in_booking_rejected(self, lifecycle, make_booking):
        booking = await make_booking(status="checkedin")
        with pytest.raises(PreconditionFailed):
            await lifecycle.penalty_preview(BookingKind.ROOM, booking.id, RECEPTIONIST)


class TestCheckIn:
    async def test_same_calendar_day_is_allowed(self, lifecycle, make_booking):
        booking = await make_booking(check_in_date=NOW + timedelta(hours=5))
        updated = await lifecycle.transition(BookingKind.ROOM, booking.id, to("checkedin"), RECEPTIONIST)
        assert updated.status == "checkedin"
        assert updated.checked_in_at == NOW

    async def test_before_check_in_day_fails(self, lifecycle, make_booking):
        booking = await make_booking(check_in_date=NOW + timedelta(days=1))
        with pytest.raises(PreconditionFailed):
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("checkedin"), RECEPTIONIST)


class TestCheckOut:
    async def test_settled_booking_completes(self, lifecycle, make_booking):
        booking = await make_booking(
            status="checkedin", total_amount=Decimal("20000"), total_paid=Decimal("20000")
        )
        updated = await lifecycle.transition(BookingKind.ROOM, booking.id, to("completed"), RECEPTIONIST)
        assert updated.status == "completed"
        assert updated.checked_out_at == NOW

    async def test_outstanding_balance_blocks_check_out(self, lifecycle, make_booking, backend):
        booking = await make_booking(
            status="checkedin", total_amount=Decimal("20000"), total_paid=Decimal("15000")
        )
        with pytest.raises(PaymentRequired) as exc:
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("completed"), RECEPTIONIST)
        assert exc.value.outstanding == Decimal("5000.00")
        assert (await backend.fetch_booking(booking.id)).status == "checkedin"


class TestConcurrency:
    async def test_stale_expected_version_conflicts(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        with pytest.raises(Conflict) as exc:
            await lifecycle.transition(
                BookingKind.ROOM, booking.id, to("confirmed", expected_version=7), RECEPTIONIST
            )
        assert exc.value.current_version == booking.version

    async def test_backend_rejects_write_on_old_version(self, backend, make_booking):
        booking = await make_booking(status="pending")
        await backend.persist_transition(
            BookingKind.ROOM, booking.id, "confirmed", TransitionPayload(), booking.version
        )
        with pytest.raises(Conflict) as exc:
            await backend.persist_transition(
                BookingKind.ROOM, booking.id, "cancelled", TransitionPayload(), booking.version
            )
        assert exc.value.current_version == booking.version + 1
        assert (await backend.fetch_booking(booking.id)).status == "confirmed"


class TestIdempotency:
    async def test_replay_returns_first_result(self, lifecycle, make_booking, backend):
        booking = await make_booking(status="pending")
        first = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("confirmed"), RECEPTIONIST, idempotency_key="tok-1"
        )
        second = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("confirmed"), RECEPTIONIST, idempotency_key="tok-1"
        )
        assert second == first
        assert (await backend.fetch_booking(booking.id)).version == first.version

    async def test_key_reused_by_another_actor_is_evaluated_afresh(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("cancelled"), GUEST, idempotency_key="tok-3"
        )
        with pytest.raises(AuthorizationError):
            await lifecycle.transition(
                BookingKind.ROOM, booking.id, to("cancelled"), OTHER_GUEST, idempotency_key="tok-3"
            )

    async def test_repeat_without_key_is_rejected(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        await lifecycle.transition(BookingKind.ROOM, booking.id, to("confirmed"), RECEPTIONIST)
        with pytest.raises(ForbiddenTransition):
            await lifecycle.transition(BookingKind.ROOM, booking.id, to("confirmed"), RECEPTIONIST)

    async def test_failed_attempt_is_not_replayed(self, lifecycle, make_booking, clock):
        booking = await make_booking(check_in_date=NOW + timedelta(days=1))
        with pytest.raises(PreconditionFailed):
            await lifecycle.transition(
                BookingKind.ROOM, booking.id, to("checkedin"), RECEPTIONIST, idempotency_key="tok-2"
            )
        clock.advance(timedelta(days=1))
        updated = await lifecycle.transition(
            BookingKind.ROOM, booking.id, to("checkedin"), RECEPTIONIST, idempotency_key="tok-2"
        )
        assert updated.status == "checkedin"


class TestFacilityLifecycle:
    async def test_hourly_cancel_within_a_day_is_half(self, lifecycle, make_facility_booking):
        booking = await make_facility_booking(
            booking_date=NOW + timedelta(hours=10), base_charge=Decimal("4000")
        )
        updated = await lifecycle.transition(
            BookingKind.FACILITY, booking.id, to("cancelled"), RECEPTIONIST
        )
        assert updated.cancellation_penalty == Decimal("2000.00")

    async def test_daily_booking_uses_start_date(self, lifecycle, make_facility_booking):
        booking = await make_facility_booking(
            booking_type="daily",
            booking_date=None,
            start_date=NOW - timedelta(hours=1),
            end_date=NOW + timedelta(days=1),
            base_charge=Decimal("6000"),
        )
        updated = await lifecycle.transition(
            BookingKind.FACILITY, booking.id, to("cancelled"), RECEPTIONIST
        )
        assert updated.cancellation_penalty == Decimal("6000.00")

    async def test_in_use_then_check_out_with_additional_charges(
        self, lifecycle, make_facility_booking, backend
    ):
        booking = await make_facility_booking(
            booking_date=NOW + timedelta(hours=2), total_paid=Decimal("2000")
        )
        in_use = await lifecycle.transition(BookingKind.FACILITY, booking.id, to("in_use"), RECEPTIONIST)
        assert in_use.status == "in_use"

        with pytest.raises(PaymentRequired) as exc:
            await lifecycle.transition(
                BookingKind.FACILITY,
                booking.id,
                to("completed", additional_charges=Decimal("500")),
                RECEPTIONIST,
            )
        assert exc.value.outstanding == Decimal("500.00")

        charged = await backend.fetch_facility_booking(booking.id)
        assert charged.total_amount == Decimal("2500.00")
        assert charged.payment_status == PaymentStatus.PARTIALLY_PAID

    async def test_settled_facility_checks_out(self, lifecycle, make_facility_booking):
        booking = await make_facility_booking(status="in_use", total_paid=Decimal("2000"))
        updated = await lifecycle.transition(
            BookingKind.FACILITY, booking.id, to("completed"), RECEPTIONIST
        )
        assert updated.status == "completed"

    async def test_additional_charges_only_on_facility_check_out(self, lifecycle, make_booking):
        booking = await make_booking(status="checkedin", total_paid=Decimal("15000"))
        with pytest.raises(ValidationError):
            await lifecycle.transition(
                BookingKind.ROOM, booking.id, to("completed", additional_charges=Decimal("1")), RECEPTIONIST
            )


class TestDetail:
    async def test_guest_sees_own_allowed_transitions(self, lifecycle, make_booking):
        booking = await make_booking(status="pending")
        detail = await lifecycle.detail(BookingKind.ROOM, booking.id, GUEST)
        assert detail.allowed_transitions == ["cancelled"]
        assert detail.outstanding_balance == Decimal("15000.00")

    async def test_staff_allowed_transitions(self, lifecycle, make_booking):
        booking = await make_booking()
        detail = await lifecycle.detail(BookingKind.ROOM, booking.id, RECEPTIONIST)
        assert detail.allowed_transitions == ["cancelled", "checkedin"]

    async def test_other_guest_cannot_view(self, lifecycle, make_booking):
        booking = await make_booking()
        with pytest.raises(AuthorizationError):
            await lifecycle.detail(BookingKind.ROOM, booking.id, OTHER_GUEST)
