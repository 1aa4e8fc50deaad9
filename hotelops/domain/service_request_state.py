"""Service request state machine."""

from hotelops.core.exceptions import ForbiddenTransition, ValidationError
from hotelops.domain.enums import ServiceRequestStatus

SERVICE_REQUEST_TRANSITIONS: dict[str, set[str]] = {
    ServiceRequestStatus.PENDING.value: {ServiceRequestStatus.IN_PROGRESS.value},
    ServiceRequestStatus.IN_PROGRESS.value: {ServiceRequestStatus.COMPLETED.value},
    ServiceRequestStatus.COMPLETED.value: set(),  # Terminal
}


def assert_service_request_transition(current: str, target: str) -> None:
    """Validate service request state transition.

    Raises:
        ValidationError: If the target is not a known status
        ForbiddenTransition: If the transition is not allowed
    """
    try:
        target = ServiceRequestStatus(target).value
    except ValueError:
        raise ValidationError(f"Unknown service request status: '{target}'")
    current = current.value if isinstance(current, ServiceRequestStatus) else current

    allowed = SERVICE_REQUEST_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ForbiddenTransition(
            current,
            target,
            detail=f"Service request cannot move from '{current}' to '{target}'",
        )
