"""Role-based access control and permissions."""

from dataclasses import dataclass
from enum import Enum

from hotelops.core.exceptions import AuthorizationError
from hotelops.domain.enums import STAFF_ROLES, UserRole


class Permission(str, Enum):
    """System permissions."""

    VIEW_BOOKING = "view_booking"
    VIEW_ANY_BOOKING = "view_any_booking"
    TRANSITION_BOOKING = "transition_booking"
    RECORD_CARD_PAYMENT = "record_card_payment"
    RECORD_CASH_PAYMENT = "record_cash_payment"
    MANAGE_INVOICES = "manage_invoices"
    UPDATE_SERVICE_REQUEST = "update_service_request"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.GUEST: {
        Permission.VIEW_BOOKING,
        Permission.TRANSITION_BOOKING,
        Permission.RECORD_CARD_PAYMENT,
    },
    UserRole.RECEPTIONIST: {
        Permission.VIEW_BOOKING,
        Permission.VIEW_ANY_BOOKING,
        Permission.TRANSITION_BOOKING,
        Permission.RECORD_CARD_PAYMENT,
        Permission.RECORD_CASH_PAYMENT,
        Permission.MANAGE_INVOICES,
        Permission.UPDATE_SERVICE_REQUEST,
    },
    UserRole.HOUSEKEEPING: {
        Permission.UPDATE_SERVICE_REQUEST,
    },
    UserRole.ADMIN: {
        # Admins have all permissions
        perm for perm in Permission
    },
}


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    id: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def require(self, permission: Permission) -> None:
        if not has_permission(self.role, permission):
            raise AuthorizationError(
                f"Permission '{permission.value}' is required for this action"
            )

    def require_booking_access(self, guest_id: str | None) -> None:
        """Guests see only their own bookings; housekeeping sees none."""
        self.require(Permission.VIEW_BOOKING)
        if has_permission(self.role, Permission.VIEW_ANY_BOOKING):
            return
        if guest_id is None or guest_id != self.id:
            raise AuthorizationError("You don't have permission to access this booking")
