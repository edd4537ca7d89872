# =======================================================================================
# authintegrate/api/routes/hardware.py - Device Event Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends

from ...models.schemas import HardwareEventRequest, MessageResponse, SimulateEventRequest, UserWithProfile
from ...services.hardware_service import HardwareService
from ..dependencies import get_hardware_service, require_admin

router = APIRouter()


@router.post("/hardware/event", response_model=MessageResponse)
async def hardware_event(
    request: HardwareEventRequest,
    hardware: HardwareService = Depends(get_hardware_service),
):
    """
    Entry point for the fingerprint device over Wi-Fi.

    REG enrolls a new hardware user (409 if the id is taken); LOGIN records an
    access attempt for a known user (404 otherwise). The response is sent
    once the event has been stored and pushed to dashboards.
    """
    message = await hardware.process_event(request)
    return MessageResponse(message=message)


@router.post("/hardware/simulate", response_model=MessageResponse)
async def simulate_event(
    request: SimulateEventRequest,
    admin: UserWithProfile = Depends(require_admin),
    hardware: HardwareService = Depends(get_hardware_service),
):
    message = await hardware.simulate_event(request)
    return MessageResponse(message=message)
