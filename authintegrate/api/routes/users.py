# =======================================================================================
# authintegrate/api/routes/users.py - User Management Endpoints (admin only)
# =======================================================================================
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError

from ...models.schemas import MessageResponse, UpdateUserRequest, UserWithProfile
from ...services.storage_service import StorageService
from ..dependencies import get_storage, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=List[UserWithProfile])
def list_users(
    admin: UserWithProfile = Depends(require_admin),
    storage: StorageService = Depends(get_storage),
):
    return storage.get_all_users_with_profiles()


@router.put("/users/{user_id}", response_model=UserWithProfile)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    admin: UserWithProfile = Depends(require_admin),
    storage: StorageService = Depends(get_storage),
):
    if storage.get_profile_by_user_id(user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found.")

    try:
        storage.update_profile(
            user_id,
            name=body.name,
            email=body.email,
            mobile=body.mobile or None,
            role=body.role,
        )
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already in use")

    logger.info("Admin %s updated profile of user %s", admin.id, user_id)
    return storage.get_user_with_profile(user_id)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    admin: UserWithProfile = Depends(require_admin),
    storage: StorageService = Depends(get_storage),
):
    if not storage.delete_hardware_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return MessageResponse(message="User deleted successfully")
