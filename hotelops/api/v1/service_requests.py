"""Service request endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hotelops.api.deps import CurrentActor, get_service_request_service
from hotelops.schemas.service_request import ServiceRequestSnapshot, ServiceRequestStatusUpdate
from hotelops.services.service_request_service import ServiceRequestService

router = APIRouter()


@router.patch("/{request_id}/status", response_model=ServiceRequestSnapshot)
async def update_service_request_status(
    request_id: str,
    data: ServiceRequestStatusUpdate,
    actor: CurrentActor,
    service: Annotated[ServiceRequestService, Depends(get_service_request_service)],
) -> ServiceRequestSnapshot:
    """Move a request pending -> in_progress -> completed."""
    return await service.update_status(request_id, data, actor)
