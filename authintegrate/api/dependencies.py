# =======================================================================================
# authintegrate/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Depends, Request

from ..container import ServiceContainer
from ..models.schemas import UserWithProfile
from ..services.auth_service import AuthService
from ..services.hardware_service import HardwareService
from ..services.storage_service import StorageService
from ..utils.exceptions import AuthenticationError, AuthorizationError

SESSION_USER_KEY = "userId"


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_storage(services: ServiceContainer = Depends(get_services)) -> StorageService:
    return services.storage


def get_auth_service(services: ServiceContainer = Depends(get_services)) -> AuthService:
    return services.auth


def get_hardware_service(services: ServiceContainer = Depends(get_services)) -> HardwareService:
    return services.hardware


def get_current_user(
    request: Request, storage: StorageService = Depends(get_storage)
) -> UserWithProfile:
    """Resolve the session's user; 401 when there is no (or a stale) session."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise AuthenticationError("Unauthorized")

    user = storage.get_user_with_profile(user_id)
    if user is None:
        # hardware user was deleted while the session was alive
        request.session.clear()
        raise AuthenticationError("Unauthorized")
    return user


def require_admin(user: UserWithProfile = Depends(get_current_user)) -> UserWithProfile:
    if user.profile is None or user.profile.role != "admin":
        raise AuthorizationError("Admin access required")
    return user
