# =======================================================================================
# authintegrate/services/connection_manager.py - Realtime WebSocket Transport
# =======================================================================================
import json
import logging
from typing import Any, Callable, Dict, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from ..models.schemas import HardwareStatusMessage

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live dashboard sockets and fans broadcast messages out to them."""

    def __init__(self, status_provider: Callable[[], bool]):
        self._status_provider = status_provider
        self._connections: Set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """Accept the socket and send the current hardware status as the first message."""
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("WebSocket client connected (%d live)", len(self._connections))
        status = HardwareStatusMessage(connected=self._status_provider())
        await websocket.send_text(status.model_dump_json())

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.discard(websocket)
            logger.info("WebSocket client disconnected (%d live)", len(self._connections))

    @staticmethod
    def _is_open(websocket: WebSocket) -> bool:
        return (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        )

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """Serialize once and write to every open socket. Returns the number reached."""
        payload = json.dumps(message, default=str)
        sent = 0
        for websocket in list(self._connections):
            if not self._is_open(websocket):
                continue
            try:
                await websocket.send_text(payload)
                sent += 1
            except Exception as e:
                # a dead peer must not take the broadcast down with it
                logger.warning("WebSocket send failed, dropping client: %s", e)
                self.disconnect(websocket)
        return sent

    async def close_all(self, code: int = 1001) -> None:
        for websocket in list(self._connections):
            if self._is_open(websocket):
                try:
                    await websocket.close(code=code)
                except RuntimeError:
                    pass
            self.disconnect(websocket)
