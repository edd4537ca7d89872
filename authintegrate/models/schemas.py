# =======================================================================================
# authintegrate/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from .enums import AccessResult, HardwareCommand, UserRole, NOTE_MAX_LENGTH


# ========== Hardware events ==========

class HardwareEventRequest(BaseModel):
    """Event reported by the fingerprint device (HTTP body or serial JSON line)."""
    command: HardwareCommand
    userId: int = Field(..., ge=0, strict=True, description="Device-assigned user id")
    fingerId: Optional[int] = Field(None, ge=0, strict=True, description="Fingerprint template slot")
    password: Optional[str] = Field(None, max_length=50)
    result: Optional[AccessResult] = None
    note: Optional[str] = None


class SimulateEventRequest(BaseModel):
    userId: int = Field(..., ge=0, strict=True)
    result: Optional[AccessResult] = None
    note: Optional[str] = None


class AccessEvent(BaseModel):
    """Canonical event carried on the ``access_event`` topic."""
    userId: int
    outcome: AccessResult
    note: Optional[str] = Field(None, max_length=NOTE_MAX_LENGTH)


# ========== Auth ==========

class RegisterRequest(BaseModel):
    userId: int = Field(..., ge=0, strict=True)
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    mobile: Optional[str] = Field(None, max_length=20)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyHardwareRequest(BaseModel):
    userId: int = Field(..., ge=0, strict=True)
    password: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


# ========== Users ==========

class HardwareUser(BaseModel):
    id: int
    fingerId: int
    createdAt: datetime


class UserProfile(BaseModel):
    """Public profile view; never carries the password hash."""
    id: int
    userId: int
    name: str
    email: str
    mobile: Optional[str] = None
    role: UserRole
    createdAt: datetime


class ProfileRecord(UserProfile):
    """Profile row as stored, including the credential hash (server-side only)."""
    passwordHash: str


class UserWithProfile(BaseModel):
    id: int
    fingerId: int
    createdAt: datetime
    profile: Optional[UserProfile] = None


class UpdateUserRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    mobile: Optional[str] = Field(None, max_length=20)
    role: UserRole


# ========== Logs ==========

class AccessLogWithUser(BaseModel):
    """Access log row joined with the owner's profile display fields."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    userId: Optional[int] = None
    result: AccessResult
    note: Optional[str] = None
    createdAt: datetime
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None


# ========== Stats / health ==========

class SystemStats(BaseModel):
    totalUsers: int
    totalAccessLogs: int
    accessGrantedToday: int
    accessDeniedToday: int
    hardwareConnected: bool = False


class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None


# ========== Realtime ==========

class HardwareStatusMessage(BaseModel):
    type: str = "hardware_status"
    connected: bool


class AccessLogMessage(BaseModel):
    type: str = "access_log"
    log: AccessLogWithUser
