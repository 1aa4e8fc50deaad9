"""Booking state machines.

Each graph maps ``(current status, actor role)`` to the statuses that actor
may move the booking to, together with the guard that must hold first.
Room and facility bookings share the shape; facility bookings are "in use"
rather than "checked in".
"""

from datetime import datetime, tzinfo
from enum import Enum

from hotelops.core.clock import local_date
from hotelops.core.exceptions import ForbiddenTransition, ValidationError
from hotelops.domain.enums import (
    STAFF_ROLES,
    BookingKind,
    BookingStatus,
    FacilityBookingStatus,
    UserRole,
)


class Guard(str, Enum):
    """Precondition attached to a transition edge."""

    NONE = "none"
    PENALTY = "penalty"  # cancellation penalty is computed and stored
    CHECK_IN_DAY = "check_in_day"  # local calendar day has reached the stay start
    SETTLED = "settled"  # outstanding balance is zero


Graph = dict[tuple[str, UserRole], dict[str, Guard]]


def _value(status: str | Enum) -> str:
    return status.value if isinstance(status, Enum) else status


def _build_graph(status: type[BookingStatus] | type[FacilityBookingStatus], occupied: Enum) -> Graph:
    pending, confirmed = status.PENDING.value, status.CONFIRMED.value
    completed, cancelled = status.COMPLETED.value, status.CANCELLED.value
    staff_edges = {
        pending: {confirmed: Guard.NONE, cancelled: Guard.NONE},
        confirmed: {cancelled: Guard.PENALTY, occupied.value: Guard.CHECK_IN_DAY},
        occupied.value: {completed: Guard.SETTLED},
    }
    graph: Graph = {
        (pending, UserRole.GUEST): {cancelled: Guard.NONE},
    }
    for role in STAFF_ROLES:
        for current, edges in staff_edges.items():
            graph[(current, role)] = dict(edges)
    return graph


ROOM_TRANSITIONS: Graph = _build_graph(BookingStatus, BookingStatus.CHECKED_IN)
FACILITY_TRANSITIONS: Graph = _build_graph(FacilityBookingStatus, FacilityBookingStatus.IN_USE)

TRANSITION_GRAPHS: dict[BookingKind, Graph] = {
    BookingKind.ROOM: ROOM_TRANSITIONS,
    BookingKind.FACILITY: FACILITY_TRANSITIONS,
}

STATUS_TYPES: dict[BookingKind, type[Enum]] = {
    BookingKind.ROOM: BookingStatus,
    BookingKind.FACILITY: FacilityBookingStatus,
}


def _validate_graph(graph: Graph, status: type[Enum]) -> None:
    members = {member.value for member in status}
    for (current, role), edges in graph.items():
        if current not in members or not set(edges) <= members:
            raise RuntimeError(f"Transition graph references unknown {status.__name__}: {current}")
        if not isinstance(role, UserRole):
            raise RuntimeError(f"Transition graph references unknown role: {role}")


for _kind, _graph in TRANSITION_GRAPHS.items():
    _validate_graph(_graph, STATUS_TYPES[_kind])


def parse_status(kind: BookingKind, value: str) -> str:
    """Validate a status string for the booking kind."""
    try:
        return STATUS_TYPES[kind](value).value
    except ValueError:
        raise ValidationError(f"Unknown {kind.value} booking status: '{value}'")


def allowed_transitions(kind: BookingKind, current: str, role: UserRole) -> dict[str, Guard]:
    """Targets reachable from ``current`` for ``role``, with their guards."""
    return dict(TRANSITION_GRAPHS[kind].get((_value(current), UserRole(role)), {}))


def assert_booking_transition(
    kind: BookingKind,
    current: str,
    target: str,
    role: UserRole,
) -> Guard:
    current, target, role = _value(current), _value(target), UserRole(role)
    allowed = allowed_transitions(kind, current, role)
    if target not in allowed:
        if role == UserRole.GUEST and current == "confirmed" and target == "cancelled":
            raise ForbiddenTransition(
                current,
                target,
                role.value,
                detail=(
                    "You cannot cancel a confirmed booking. "
                    "Please contact the hotel directly for assistance."
                ),
            )
        raise ForbiddenTransition(current, target, role.value)
    return allowed[target]


def check_in_allowed(start: datetime, now: datetime, tz: tzinfo) -> bool:
    """True once the hotel-local calendar day of ``now`` reaches that of ``start``.

    Compared by day, not instant: a guest arriving at 08:00 for a booking whose
    check-in is 14:00 the same day may be checked in.
    """
    return local_date(now, tz) >= local_date(start, tz)
