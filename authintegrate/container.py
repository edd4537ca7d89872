# =======================================================================================
# authintegrate/container.py - Service Wiring
# =======================================================================================
from typing import Optional

from .config import Config
from .database import DatabaseManager
from .services.auth_service import AuthService
from .services.broadcast_coordinator import BroadcastCoordinator
from .services.connection_manager import ConnectionManager
from .services.event_bus import EventBus
from .services.hardware_service import HardwareService
from .services.storage_service import StorageService
from .workers.serial_worker import SerialWorker


class ServiceContainer:
    """
    Composition root. One instance per application, created in create_app()
    and kept on ``app.state.services``; routes reach it through the
    dependencies in ``api/dependencies.py``.
    """

    def __init__(self, settings: Config, db: Optional[DatabaseManager] = None):
        self.settings = settings
        self.db = db or DatabaseManager(settings)
        self.storage = StorageService(self.db)
        self.bus = EventBus()
        self.auth = AuthService(self.storage)

        serial_mode = settings.HARDWARE_MODE == "serial"
        # HTTP mode: the device reaches us over Wi-Fi, assume it is up
        self.hardware = HardwareService(self.bus, self.storage, connected=not serial_mode)
        self.connections = ConnectionManager(self.hardware.is_connected)
        self.coordinator = BroadcastCoordinator(self.bus, self.storage, self.connections)
        self.serial_worker: Optional[SerialWorker] = (
            SerialWorker(self.hardware, settings) if serial_mode else None
        )

    async def startup(self) -> None:
        self.coordinator.attach()
        if self.serial_worker is not None:
            self.serial_worker.start()

    async def shutdown(self) -> None:
        if self.serial_worker is not None:
            await self.serial_worker.stop()
        await self.connections.close_all()
        self.coordinator.detach()
        self.bus.clear()
        self.db.dispose()
