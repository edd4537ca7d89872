# =======================================================================================
# authintegrate/services/broadcast_coordinator.py - Enrichment & Broadcast
# =======================================================================================
import logging
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from .event_bus import EventBus
from .storage_service import StorageService
from ..models.enums import Topic
from ..models.schemas import AccessEvent, AccessLogMessage, AccessLogWithUser, HardwareStatusMessage

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    async def broadcast(self, message: dict) -> int: ...


class BroadcastCoordinator:
    """
    Persists access events and pushes the enriched row to live clients.

    The pushed row is re-read through the same join the REST log endpoints
    use, so WebSocket and REST consumers see identical fields. It is looked
    up by the id the insert returned rather than "most recent", which keeps
    interleaved events from picking up each other's rows.
    """

    def __init__(self, bus: EventBus, storage: StorageService, transport: Broadcaster):
        self.bus = bus
        self.storage = storage
        self.transport = transport

    def attach(self) -> None:
        self.bus.subscribe(Topic.ACCESS_EVENT, self.on_access_event)
        self.bus.subscribe(Topic.HARDWARE_STATUS_CHANGE, self.on_hardware_status_change)

    def detach(self) -> None:
        self.bus.unsubscribe(Topic.ACCESS_EVENT, self.on_access_event)
        self.bus.unsubscribe(Topic.HARDWARE_STATUS_CHANGE, self.on_hardware_status_change)

    async def on_access_event(self, event: AccessEvent) -> Optional[AccessLogWithUser]:
        try:
            log_id = await run_in_threadpool(self.storage.create_access_log, event)
        except SQLAlchemyError:
            # no replay exists upstream; the event is dropped
            logger.exception(
                "Dropping access event for user %s (%s): insert failed", event.userId, event.outcome
            )
            return None

        try:
            log = await run_in_threadpool(self.storage.get_access_log, log_id)
        except SQLAlchemyError:
            logger.exception("Access log %s stored but could not be re-read for broadcast", log_id)
            return None
        if log is None:
            logger.warning("Access log %s vanished before broadcast", log_id)
            return None

        message = AccessLogMessage(log=log)
        await self.transport.broadcast(message.model_dump(mode="json"))
        logger.debug("Broadcast access log %s (%s, user %s)", log.id, log.result, log.userId)
        return log

    async def on_hardware_status_change(self, connected: bool) -> None:
        message = HardwareStatusMessage(connected=bool(connected))
        await self.transport.broadcast(message.model_dump(mode="json"))
