"""Database models."""

from hotelops.models.booking import Booking, FacilityBooking
from hotelops.models.hotel import Facility, Room
from hotelops.models.payment import Invoice, Payment
from hotelops.models.service_request import ServiceRequest

__all__ = [
    "Booking",
    "Facility",
    "FacilityBooking",
    "Invoice",
    "Payment",
    "Room",
    "ServiceRequest",
]
