# =======================================================================================
# authintegrate/api/routes/auth.py - Dashboard Authentication Endpoints
# =======================================================================================
import logging
import secrets

from fastapi import APIRouter, Depends, Request

from ...models.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserWithProfile,
    VerifyHardwareRequest,
)
from ...services.auth_service import AuthService
from ..dependencies import SESSION_USER_KEY, get_auth_service, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/register", response_model=MessageResponse)
def register(request: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Self-registration of a web profile for an already enrolled fingerprint."""
    auth_service.register(request)
    logger.info("Profile registered for hardware user %s", request.userId)
    return MessageResponse(message="Registration successful")


@router.post("/auth/login", response_model=MessageResponse)
def login(
    body: LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    profile = auth_service.authenticate(body.email, body.password)

    # regenerate: nothing from a pre-login session survives, and the cookie changes
    request.session.clear()
    request.session["sid"] = secrets.token_urlsafe(16)
    request.session[SESSION_USER_KEY] = profile.userId
    return MessageResponse(message="Login successful")


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request):
    request.session.clear()
    return MessageResponse(message="Logout successful")


@router.get("/auth/me", response_model=UserWithProfile)
def me(user: UserWithProfile = Depends(get_current_user)):
    return user


@router.post("/auth/verify_hardware", response_model=MessageResponse)
def verify_hardware(
    body: VerifyHardwareRequest, auth_service: AuthService = Depends(get_auth_service)
):
    """Password factor for the device: checks the keypad PIN against the web profile."""
    auth_service.verify_hardware_credentials(body.userId, body.password)
    return MessageResponse(message="Credentials verified.")
