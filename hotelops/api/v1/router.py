"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from hotelops.api.v1 import bookings, checkout, payments, service_requests

api_router = APIRouter()

# Room bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(payments.router, prefix="/bookings", tags=["Payments"])
api_router.include_router(checkout.router, prefix="/bookings", tags=["Checkout"])

# Facility bookings
api_router.include_router(
    bookings.facility_router, prefix="/facility-bookings", tags=["Facility Bookings"]
)
api_router.include_router(payments.facility_router, prefix="/facility-bookings", tags=["Payments"])

# Service requests
api_router.include_router(
    service_requests.router, prefix="/service-requests", tags=["Service Requests"]
)
