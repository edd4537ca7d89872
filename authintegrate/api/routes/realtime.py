# =======================================================================================
# authintegrate/api/routes/realtime.py - WebSocket Push Channel
# =======================================================================================
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def realtime(websocket: WebSocket):
    """Server -> client only: ``hardware_status`` and ``access_log`` messages."""
    manager = websocket.app.state.services.connections
    try:
        await manager.connect(websocket)
        # clients have nothing to say; read until they go away
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning("WebSocket error: %s", e)
    finally:
        manager.disconnect(websocket)
