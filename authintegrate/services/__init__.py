# =======================================================================================
# authintegrate/services/__init__.py - Services Package
# =======================================================================================
from .event_bus import EventBus
from .storage_service import StorageService
from .auth_service import AuthService
from .hardware_service import HardwareService
from .connection_manager import ConnectionManager
from .broadcast_coordinator import BroadcastCoordinator

__all__ = [
    "EventBus", "StorageService", "AuthService", "HardwareService",
    "ConnectionManager", "BroadcastCoordinator",
]
