"""Pydantic schemas for request/response validation."""

from hotelops.schemas.booking import (
    AnyBooking,
    BalanceResponse,
    BookingDetailResponse,
    BookingSnapshot,
    CustomerDetails,
    FacilityBookingSnapshot,
    FacilityPricing,
    PenaltyPreviewResponse,
    RoomPricing,
    TransitionPayload,
    TransitionRequest,
)
from hotelops.schemas.invoice import CheckoutStateResponse, InvoiceSnapshot
from hotelops.schemas.payment import (
    PaymentCreate,
    PaymentListResponse,
    PaymentRecord,
    PaymentResponse,
    PaymentAccepted,
)
from hotelops.schemas.service_request import ServiceRequestSnapshot, ServiceRequestStatusUpdate

__all__ = [
    "AnyBooking",
    "BalanceResponse",
    "BookingDetailResponse",
    "BookingSnapshot",
    "CheckoutStateResponse",
    "CustomerDetails",
    "FacilityBookingSnapshot",
    "FacilityPricing",
    "InvoiceSnapshot",
    "PaymentCreate",
    "PaymentListResponse",
    "PaymentRecord",
    "PaymentResponse",
    "PaymentAccepted",
    "PenaltyPreviewResponse",
    "RoomPricing",
    "ServiceRequestSnapshot",
    "ServiceRequestStatusUpdate",
    "TransitionPayload",
    "TransitionRequest",
]
