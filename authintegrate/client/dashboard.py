# =======================================================================================
# authintegrate/client/dashboard.py - Live Dashboard Session
# =======================================================================================
import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

import httpx
from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from .analytics import calculate_success_rate
from .reconciliation import LogReconciliationCache
from ..models.enums import MessageType
from ..models.schemas import SystemStats

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006

STATS_INTERVAL = 5.0
LOGS_INTERVAL = 3.0
USERS_INTERVAL = 5.0


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class DashboardSession:
    """
    One admin dashboard: REST polling plus the WebSocket push channel, both
    feeding a LogReconciliationCache.

    The socket is not reopened after it closes; polling keeps running, so
    the view is at most one poll interval stale while the push channel is down.
    """

    def __init__(
        self,
        base_url: str,
        cache: Optional[LogReconciliationCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        stats_interval: float = STATS_INTERVAL,
        logs_interval: float = LOGS_INTERVAL,
        users_interval: float = USERS_INTERVAL,
        timeout: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache = cache or LogReconciliationCache()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.stats_interval = stats_interval
        self.logs_interval = logs_interval
        self.users_interval = users_interval

        self.state: Optional[ConnectionState] = None
        self.hardware_connected = False
        self.stats: Optional[SystemStats] = None

        self._ws = None
        self._tasks: List[asyncio.Task] = []
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def ws_url(self) -> str:
        scheme, rest = self.base_url.split("://", 1)
        return f"{'wss' if scheme == 'https' else 'ws'}://{rest}/ws"

    @property
    def success_rate(self) -> int:
        return calculate_success_rate(self.stats)

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------
    async def login(self, email: str, password: str) -> None:
        response = await self._http.post("/api/auth/login", json={"email": email, "password": password})
        response.raise_for_status()

    async def poll_stats(self) -> SystemStats:
        response = await self._http.get("/api/stats")
        response.raise_for_status()
        self.stats = SystemStats.model_validate(response.json())
        self.hardware_connected = self.stats.hardwareConnected
        return self.stats

    async def poll_logs(self) -> None:
        response = await self._http.get("/api/logs")
        response.raise_for_status()
        self.cache.apply_snapshot(response.json())

    async def poll_users(self) -> int:
        response = await self._http.get("/api/users")
        response.raise_for_status()
        return self.cache.apply_roster(response.json())

    async def refresh_all(self) -> None:
        for poll in (self.poll_stats, self.poll_logs, self.poll_users):
            try:
                await poll()
            except httpx.HTTPError as e:
                logger.warning("Refresh via %s failed: %s", poll.__name__, e)

    async def _poll_forever(self, poll: Callable[[], Awaitable[Any]], interval: float) -> None:
        while True:
            try:
                await poll()
            except httpx.HTTPError as e:
                logger.warning("Poll %s failed: %s", poll.__name__, e)
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Push channel
    # ------------------------------------------------------------------
    def handle_message(self, raw: Union[str, bytes, dict]) -> Optional[MessageType]:
        """Apply one server message. Ignored unless the socket is OPEN."""
        if self.state != ConnectionState.OPEN:
            return None
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            kind = MessageType(data.get("type"))
        except (ValueError, AttributeError) as e:
            logger.error("WebSocket message error: %s", e)
            return None

        if kind == MessageType.ACCESS_LOG:
            try:
                self.cache.apply_push(data["log"])
            except (KeyError, ValueError) as e:
                logger.error("Bad access_log payload: %s", e)
                return None
        elif kind == MessageType.HARDWARE_STATUS:
            self.hardware_connected = bool(data.get("connected"))
        return kind

    def _on_closed(self, code: int) -> None:
        self.state = ConnectionState.CLOSED
        self.hardware_connected = False
        self._ws = None
        if code != NORMAL_CLOSURE:
            logger.warning("WebSocket closed unexpectedly (code %s). Check server or network.", code)
        else:
            logger.info("WebSocket closed")

    def _cookie_header(self) -> dict:
        cookies = "; ".join(f"{name}={value}" for name, value in self._http.cookies.items())
        return {"Cookie": cookies} if cookies else {}

    def _schedule_refresh(self) -> None:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self.refresh_all())

    async def _run_websocket(self) -> None:
        self.state = ConnectionState.CONNECTING
        code = ABNORMAL_CLOSURE
        try:
            async with connect(self.ws_url, additional_headers=self._cookie_header()) as ws:
                self._ws = ws
                self.state = ConnectionState.OPEN
                try:
                    async for raw in ws:
                        if self.handle_message(raw) == MessageType.ACCESS_LOG:
                            self._schedule_refresh()
                finally:
                    code = ws.close_code or ABNORMAL_CLOSURE
        except (OSError, WebSocketException) as e:
            logger.warning("WebSocket connection failed: %s", e)
        finally:
            self._on_closed(code)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Open the push channel and start the poll loops."""
        self._tasks = [
            asyncio.create_task(self._run_websocket()),
            asyncio.create_task(self._poll_forever(self.poll_stats, self.stats_interval)),
            asyncio.create_task(self._poll_forever(self.poll_logs, self.logs_interval)),
            asyncio.create_task(self._poll_forever(self.poll_users, self.users_interval)),
        ]

    async def close(self) -> None:
        """Close the socket normally and cancel every pending poll."""
        if self._ws is not None and self.state == ConnectionState.OPEN:
            await self._ws.close(code=NORMAL_CLOSURE, reason="Dashboard closed")

        pending = self._tasks + ([self._refresh_task] if self._refresh_task else [])
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []
        self._refresh_task = None

        if self._owns_client:
            await self._http.aclose()
