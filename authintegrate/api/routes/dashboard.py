# =======================================================================================
# authintegrate/api/routes/dashboard.py - Stats & Access Log Endpoints
# =======================================================================================
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...container import ServiceContainer
from ...models.schemas import AccessLogWithUser, SystemStats, UserWithProfile
from ...services.storage_service import StorageService
from ...utils.exceptions import AuthorizationError
from ..dependencies import get_current_user, get_services, get_storage

router = APIRouter()


@router.get("/stats", response_model=SystemStats)
def get_stats(services: ServiceContainer = Depends(get_services)):
    stats = services.storage.get_system_stats()
    return stats.model_copy(update={"hardwareConnected": services.hardware.is_connected()})


@router.get("/logs", response_model=List[AccessLogWithUser])
def get_logs(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user: UserWithProfile = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    return services.storage.get_recent_access_logs(limit or services.settings.RECENT_LOG_LIMIT)


@router.get("/logs/user/{user_id}", response_model=List[AccessLogWithUser])
def get_user_logs(
    user_id: int,
    user: UserWithProfile = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    is_admin = user.profile is not None and user.profile.role == "admin"
    if user.id != user_id and not is_admin:
        raise AuthorizationError("You can only view your own access logs")
    return storage.get_user_access_logs(user_id)
