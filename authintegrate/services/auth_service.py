# =======================================================================================
# authintegrate/services/auth_service.py - Authentication for the dashboard
# =======================================================================================
import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError

from .storage_service import StorageService
from ..models.schemas import ProfileRecord, RegisterRequest
from ..utils.exceptions import AuthenticationError, RegistrationError
from ..utils.validators import is_six_digit_pin

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Handles web self-registration, login and the device's password check."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password:
            return False
        return pwd_context.verify(plain_password, hashed_password)

    def register(self, request: RegisterRequest) -> int:
        """
        Bind a web profile to an existing hardware user.

        The fingerprint must be enrolled first (the hardware user row is
        created by a REG event), and each hardware user gets one profile.
        Self-registration always yields the ``user`` role.
        """
        if self.storage.get_hardware_user(request.userId) is None:
            raise RegistrationError(
                "User not found in hardware database. Please ensure fingerprint registration first."
            )
        if self.storage.get_profile_by_user_id(request.userId) is not None:
            raise RegistrationError("Profile already exists for this User ID")
        if not is_six_digit_pin(request.password):
            raise RegistrationError("Password must be exactly 6 digits (numbers only)")
        if self.storage.get_profile_by_email(request.email) is not None:
            raise RegistrationError("Email is already registered")

        try:
            return self.storage.create_profile(
                user_id=request.userId,
                name=request.name,
                email=request.email,
                mobile=request.mobile,
                password_hash=self.hash_password(request.password),
                role="user",
            )
        except IntegrityError as e:
            # lost a race with a concurrent registration for the same user/email
            logger.warning("Profile insert rejected for user %s: %s", request.userId, e.orig)
            raise RegistrationError("Profile already exists for this User ID or email")

    def authenticate(self, email: str, password: str) -> ProfileRecord:
        profile = self.storage.get_profile_by_email(email)
        if profile is None or not self.verify_password(password, profile.passwordHash):
            raise AuthenticationError("Invalid credentials")
        return profile

    def verify_hardware_credentials(self, user_id: int, password: str) -> ProfileRecord:
        """Second factor for the device: the keypad PIN must match the web profile."""
        profile = self.storage.get_profile_by_user_id(user_id)
        if profile is None:
            raise AuthenticationError("User ID not fully registered (No web profile found).")
        if not self.verify_password(password, profile.passwordHash):
            raise AuthenticationError("Password does not match database record.")
        return profile
