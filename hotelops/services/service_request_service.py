"""Service request status updates."""

import logging

from hotelops.backends.base import HotelBackend
from hotelops.core.clock import Clock, system_clock
from hotelops.core.exceptions import Conflict
from hotelops.core.permissions import Actor, Permission
from hotelops.domain.service_request_state import assert_service_request_transition
from hotelops.schemas.service_request import ServiceRequestSnapshot, ServiceRequestStatusUpdate

logger = logging.getLogger(__name__)


class ServiceRequestService:
    def __init__(self, backend: HotelBackend, clock: Clock = system_clock):
        self.backend = backend
        self.clock = clock

    async def update_status(
        self,
        request_id: str,
        data: ServiceRequestStatusUpdate,
        actor: Actor,
    ) -> ServiceRequestSnapshot:
        actor.require(Permission.UPDATE_SERVICE_REQUEST)
        request = await self.backend.fetch_service_request(request_id)

        if data.expected_version is not None and data.expected_version != request.version:
            raise Conflict("Service request", current_version=request.version)

        assert_service_request_transition(request.status, data.status)

        updated = await self.backend.persist_service_request_status(
            request_id,
            data.status,
            data.assigned_to,
            request.version,
            self.clock.now(),
        )
        logger.info(
            f"Service request {request_id}: {request.status.value} -> {updated.status.value} by {actor.id}"
        )
        return updated
