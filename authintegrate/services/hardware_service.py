# =======================================================================================
# authintegrate/services/hardware_service.py - Hardware Event Source Adapter
# =======================================================================================
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from .auth_service import pwd_context
from .event_bus import EventBus
from .storage_service import StorageService
from ..models.enums import Topic
from ..models.schemas import AccessEvent, HardwareEventRequest, SimulateEventRequest
from ..utils.exceptions import (
    AuthIntegrateError,
    InvalidEventError,
    UserConflictError,
    UserNotFoundError,
)
from ..utils.validators import parse_serial_line, truncate_note

logger = logging.getLogger(__name__)


class HardwareService:
    """
    Normalizes device input (HTTP body or serial line) into access events.

    Validation and the existence checks happen here, before anything is
    published, so downstream subscribers only ever see events for known
    hardware users.
    """

    def __init__(self, bus: EventBus, storage: StorageService, connected: bool = True):
        self.bus = bus
        self.storage = storage
        self._connected = connected

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------
    def is_connected(self) -> bool:
        return self._connected

    async def set_connected(self, connected: bool) -> None:
        """Record the device link state; publishes only on a transition."""
        if connected == self._connected:
            return
        self._connected = connected
        logger.info("Hardware %s", "connected" if connected else "disconnected")
        await self.bus.publish(Topic.HARDWARE_STATUS_CHANGE, connected)

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------
    async def _emit(self, event: AccessEvent) -> None:
        await self.bus.publish(Topic.ACCESS_EVENT, event)
        # any event proves the device can reach us
        await self.set_connected(True)

    async def process_event(self, request: HardwareEventRequest) -> str:
        """Handle one validated device event. Returns the acknowledgement message."""
        if request.command == "REG":
            return await self._register(request)
        if request.command == "LOGIN":
            return await self._login(request.userId, request.result, request.note)
        raise InvalidEventError("Invalid hardware command.")

    async def _register(self, request: HardwareEventRequest) -> str:
        if request.fingerId is None:
            raise InvalidEventError("fingerId is required for REG")
        if request.result not in (None, "REGISTERED"):
            raise InvalidEventError("REG events must carry result REGISTERED")

        existing = await run_in_threadpool(self.storage.get_hardware_user, request.userId)
        if existing is not None:
            raise UserConflictError("User ID already exists.")

        pin_hash = None
        if request.password:
            pin_hash = await run_in_threadpool(pwd_context.hash, request.password)

        try:
            await run_in_threadpool(
                self.storage.create_hardware_user, request.userId, request.fingerId, pin_hash
            )
        except IntegrityError:
            raise UserConflictError(
                f"User ID {request.userId} or finger ID {request.fingerId} already exists."
            )

        logger.info("Registered hardware user %s (finger %s)", request.userId, request.fingerId)
        await self._emit(
            AccessEvent(
                userId=request.userId,
                outcome="REGISTERED",
                note=truncate_note(request.note) or "New fingerprint registered",
            )
        )
        return "Registration successful"

    async def _login(self, user_id: int, result: Optional[str], note: Optional[str]) -> str:
        # refuse dangling log rows for ids the device never enrolled
        user = await run_in_threadpool(self.storage.get_hardware_user, user_id)
        if user is None:
            logger.warning("Hardware LOGIN attempt for unknown userId: %s", user_id)
            raise UserNotFoundError(f"User ID {user_id} not found in hardware database.")

        outcome = result or "DENIED"
        await self._emit(
            AccessEvent(
                userId=user_id,
                outcome=outcome,
                note=truncate_note(note) or f"Hardware check result: {outcome}",
            )
        )
        return "Access logged successfully"

    async def simulate_event(self, request: SimulateEventRequest) -> str:
        """Admin/testing shortcut with the same effect as a device LOGIN."""
        await self._login(request.userId, request.result, request.note or "Simulated internal event")
        return "Event simulated successfully"

    async def handle_serial_line(self, line: str) -> Optional[str]:
        """
        Process one raw serial line. Bad lines are logged and dropped; this
        never raises for input or store problems so the reader loop keeps going.
        """
        try:
            request = parse_serial_line(line)
            return await self.process_event(request)
        except AuthIntegrateError as e:
            logger.warning("[serial] Discarded line %r: %s", line, e.message)
        except SQLAlchemyError:
            logger.exception("[serial] Store error while handling line %r", line)
        return None
