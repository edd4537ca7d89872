# =======================================================================================
# authintegrate/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "HardwareEventRequest", "SimulateEventRequest", "AccessEvent",
    "RegisterRequest", "LoginRequest", "VerifyHardwareRequest", "MessageResponse",
    "HardwareUser", "UserProfile", "ProfileRecord", "UserWithProfile",
    "UpdateUserRequest", "AccessLogWithUser", "SystemStats", "HealthResponse",
    "HardwareStatusMessage", "AccessLogMessage",
    "AccessResult", "UserRole", "HardwareCommand", "Topic", "MessageType",
]
