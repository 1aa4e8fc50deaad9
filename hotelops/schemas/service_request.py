"""Service request schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from hotelops.domain.enums import ServiceRequestStatus


class ServiceRequestSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    service_type: str
    description: str | None = None
    quantity: int = 1
    unit_price: Decimal = Decimal("0.00")
    status: ServiceRequestStatus
    assigned_to: str | None = None
    version: int = 1
    completed_at: datetime | None = None


class ServiceRequestStatusUpdate(BaseModel):
    """Schema for moving a service request along its lifecycle."""

    status: ServiceRequestStatus
    assigned_to: str | None = Field(None, max_length=36)
    expected_version: int | None = Field(None, ge=1)
