"""Transition graph for room and facility bookings."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from hotelops.core.exceptions import ForbiddenTransition, ValidationError
from hotelops.domain.booking_state import (
    Guard,
    allowed_transitions,
    assert_booking_transition,
    check_in_allowed,
    parse_status,
)
from hotelops.domain.enums import BookingKind, BookingStatus, FacilityBookingStatus, UserRole

ROOM_STATUSES = [s.value for s in BookingStatus]
FACILITY_STATUSES = [s.value for s in FacilityBookingStatus]
STAFF = [UserRole.RECEPTIONIST, UserRole.ADMIN]
COLOMBO = ZoneInfo("Asia/Colombo")


class TestPending:
    @pytest.mark.parametrize("role", STAFF)
    def test_staff_can_confirm_or_cancel(self, role):
        assert set(allowed_transitions(BookingKind.ROOM, "pending", role)) == {"confirmed", "cancelled"}

    def test_guest_can_only_cancel(self):
        assert allowed_transitions(BookingKind.ROOM, "pending", UserRole.GUEST) == {
            "cancelled": Guard.NONE
        }

    @pytest.mark.parametrize("role", list(UserRole))
    @pytest.mark.parametrize("target", ["pending", "checkedin", "completed"])
    def test_other_targets_are_forbidden(self, role, target):
        with pytest.raises(ForbiddenTransition):
            assert_booking_transition(BookingKind.ROOM, "pending", target, role)

    def test_guest_cannot_confirm(self):
        with pytest.raises(ForbiddenTransition):
            assert_booking_transition(BookingKind.ROOM, "pending", "confirmed", UserRole.GUEST)


class TestConfirmed:
    def test_guest_cancel_is_forbidden_with_contact_message(self):
        with pytest.raises(ForbiddenTransition) as exc:
            assert_booking_transition(BookingKind.ROOM, "confirmed", "cancelled", UserRole.GUEST)
        assert "contact the hotel" in exc.value.detail

    @pytest.mark.parametrize("kind", list(BookingKind))
    def test_guest_cancel_forbidden_for_both_kinds(self, kind):
        with pytest.raises(ForbiddenTransition):
            assert_booking_transition(kind, "confirmed", "cancelled", UserRole.GUEST)

    @pytest.mark.parametrize("role", STAFF)
    def test_staff_cancel_carries_penalty_guard(self, role):
        assert assert_booking_transition(BookingKind.ROOM, "confirmed", "cancelled", role) == Guard.PENALTY

    def test_check_in_carries_day_guard(self):
        guard = assert_booking_transition(
            BookingKind.ROOM, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, UserRole.RECEPTIONIST
        )
        assert guard == Guard.CHECK_IN_DAY


class TestOccupiedAndTerminal:
    def test_check_out_requires_settlement(self):
        guard = assert_booking_transition(BookingKind.ROOM, "checkedin", "completed", UserRole.ADMIN)
        assert guard == Guard.SETTLED

    def test_checked_in_cannot_be_cancelled(self):
        with pytest.raises(ForbiddenTransition):
            assert_booking_transition(BookingKind.ROOM, "checkedin", "cancelled", UserRole.ADMIN)

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    @pytest.mark.parametrize("role", list(UserRole))
    def test_terminal_statuses_have_no_exits(self, status, role):
        assert allowed_transitions(BookingKind.ROOM, status, role) == {}
        assert allowed_transitions(BookingKind.FACILITY, status, role) == {}

    @pytest.mark.parametrize("status", ROOM_STATUSES)
    def test_housekeeping_has_no_edges(self, status):
        assert allowed_transitions(BookingKind.ROOM, status, UserRole.HOUSEKEEPING) == {}


class TestFacilityGraph:
    def test_in_use_replaces_checked_in(self):
        targets = allowed_transitions(BookingKind.FACILITY, "confirmed", UserRole.RECEPTIONIST)
        assert targets == {"cancelled": Guard.PENALTY, "in_use": Guard.CHECK_IN_DAY}
        assert allowed_transitions(BookingKind.FACILITY, "in_use", UserRole.RECEPTIONIST) == {
            "completed": Guard.SETTLED
        }

    def test_room_status_is_not_a_facility_status(self):
        with pytest.raises(ForbiddenTransition):
            assert_booking_transition(BookingKind.FACILITY, "confirmed", "checkedin", UserRole.ADMIN)

    def test_every_edge_stays_inside_the_status_set(self):
        for role in UserRole:
            for status in FACILITY_STATUSES:
                assert set(allowed_transitions(BookingKind.FACILITY, status, role)) <= set(FACILITY_STATUSES)


class TestParseStatus:
    def test_known_status(self):
        assert parse_status(BookingKind.FACILITY, "in_use") == "in_use"

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            parse_status(BookingKind.ROOM, "in_use")


class TestCheckInAllowed:
    START = datetime(2025, 3, 10, 14, 0, tzinfo=COLOMBO)

    def test_morning_of_check_in_day(self):
        assert check_in_allowed(self.START, datetime(2025, 3, 10, 8, 0, tzinfo=COLOMBO), COLOMBO)

    def test_day_before(self):
        assert not check_in_allowed(self.START, datetime(2025, 3, 9, 23, 0, tzinfo=COLOMBO), COLOMBO)

    def test_later_day(self):
        assert check_in_allowed(self.START, datetime(2025, 3, 12, 10, 0, tzinfo=COLOMBO), COLOMBO)

    def test_compares_hotel_local_dates(self):
        # 20:00 UTC on the 9th is already the 10th in Colombo
        start = datetime(2025, 3, 10, 8, 0, tzinfo=UTC)
        now = datetime(2025, 3, 9, 20, 0, tzinfo=UTC)
        assert check_in_allowed(start, now, COLOMBO)
        assert not check_in_allowed(start, now, UTC)
