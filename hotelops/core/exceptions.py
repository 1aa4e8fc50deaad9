"""Custom application exceptions."""

from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception.

    ``code`` is a stable machine-readable identifier; ``extra`` is merged into
    the JSON error body by the application's exception handler.
    """

    code: str = "internal_error"
    retryable: bool = False

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        body = {"detail": self.detail, "code": self.code, **self.extra}
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationError(AppException):
    """Validation error exception."""

    code = "validation_error"

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    code = "not_found"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    code = "authentication_failed"

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    code = "not_authorized"

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ForbiddenTransition(AppException):
    """Requested status change is not an edge of the graph for this actor."""

    code = "forbidden_transition"

    def __init__(
        self,
        current: str | None = None,
        target: str | None = None,
        role: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.current = current
        self.target = target
        self.role = role
        if detail is None:
            detail = f"Transition {current} → {target} is not allowed for role '{role}'"
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            extra={"current": current, "target": target},
        )


class PreconditionFailed(AppException):
    """A transition guard or payment precondition does not hold."""

    code = "precondition_failed"

    def __init__(self, detail: str = "Precondition for this operation is not met") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class PaymentRequired(AppException):
    """Outstanding balance must be settled before the operation."""

    code = "payment_required"

    def __init__(self, outstanding: Decimal, detail: str | None = None) -> None:
        self.outstanding = outstanding
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=detail or f"Outstanding balance of {outstanding} must be settled first",
            extra={"outstanding": str(outstanding)},
        )


class OverpaymentRejected(AppException):
    """Payment amount is not positive or exceeds the outstanding balance."""

    code = "overpayment_rejected"

    def __init__(self, amount: Decimal, outstanding: Decimal) -> None:
        self.amount = amount
        self.outstanding = outstanding
        if amount <= 0:
            detail = "Payment amount must be greater than zero"
        else:
            detail = f"Payment amount {amount} exceeds outstanding balance {outstanding}"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            extra={"amount": str(amount), "outstanding": str(outstanding)},
        )


class PaymentDeclined(AppException):
    """Payment processor did not accept the payment."""

    code = "payment_declined"

    def __init__(self, detail: str = "Payment processing failed") -> None:
        super().__init__(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=detail)


class Conflict(AppException):
    """Write attempted against a stale version of the record."""

    code = "conflict"

    def __init__(self, resource: str = "Booking", current_version: int | None = None) -> None:
        self.current_version = current_version
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{resource} was modified by another request; reload and retry",
            extra={"current_version": current_version},
        )


class DuplicateTransaction(AppException):
    """Card transaction already recorded against the booking."""

    code = "duplicate_transaction"

    def __init__(self, transaction_id: str, booking_id: str) -> None:
        self.transaction_id = transaction_id
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Transaction {transaction_id} is already recorded on booking {booking_id}",
            extra={"transaction_id": transaction_id},
        )


class UpstreamUnavailable(AppException):
    """Backend collaborator failed or timed out."""

    code = "upstream_unavailable"
    retryable = True

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
