# =======================================================================================
# authintegrate/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
AccessResult = Literal["GRANTED", "DENIED", "REGISTERED"]
UserRole = Literal["admin", "user"]
HardwareCommand = Literal["REG", "LOGIN"]

ACCESS_RESULTS = ("GRANTED", "DENIED", "REGISTERED")
USER_ROLES = ("admin", "user")

NOTE_MAX_LENGTH = 100


class Topic(str, Enum):
    """Event bus topics."""
    ACCESS_EVENT = "access_event"
    HARDWARE_STATUS_CHANGE = "hardware_status_change"


class MessageType(str, Enum):
    """Server -> client realtime message types."""
    HARDWARE_STATUS = "hardware_status"
    ACCESS_LOG = "access_log"
