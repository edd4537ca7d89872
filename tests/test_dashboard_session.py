"""Dashboard session: REST polling over a mock transport and the push channel state machine."""

import asyncio
import json
import logging
from datetime import datetime

import httpx
import pytest
import pytest_asyncio

from authintegrate.client import dashboard as dashboard_module
from authintegrate.client.dashboard import ConnectionState, DashboardSession
from authintegrate.models.enums import MessageType
from factories import make_log, make_user

T0 = datetime(2026, 10, 19, 9, 0, 0)

STATS = {
    "totalUsers": 3,
    "totalAccessLogs": 10,
    "accessGrantedToday": 7,
    "accessDeniedToday": 3,
    "hardwareConnected": True,
}


class FakeApi:
    """Minimal stand-in for the REST API."""

    def __init__(self):
        self.calls = []
        self.logs = [make_log(1, T0, user_id=5)]
        self.users = [make_user(5, name="Eve")]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        path = request.url.path
        if path == "/api/auth/login":
            return httpx.Response(
                200,
                json={"message": "Login successful"},
                headers={"set-cookie": "authintegrate_session=signed; Path=/"},
            )
        if path == "/api/stats":
            return httpx.Response(200, json=STATS)
        if path == "/api/logs":
            return httpx.Response(200, json=self.logs)
        if path == "/api/users":
            return httpx.Response(200, json=self.users)
        return httpx.Response(404, json={"message": "Not Found"})


class FakeWebSocket:
    def __init__(self, messages, close_code=1000):
        self._messages = list(messages)
        self.close_code = None
        self._final_code = close_code

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._messages:
            self.close_code = self._final_code
            raise StopAsyncIteration
        return self._messages.pop(0)

    async def close(self, code=1000, reason=""):
        self.close_code = code


class FakeConnect:
    def __init__(self, ws):
        self.ws = ws
        self.headers = None

    def __call__(self, url, additional_headers=None):
        self.url = url
        self.headers = additional_headers
        return self

    async def __aenter__(self):
        return self.ws

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def api():
    return FakeApi()


@pytest_asyncio.fixture
async def session(api):
    http = httpx.AsyncClient(base_url="http://testserver", transport=httpx.MockTransport(api))
    dashboard = DashboardSession("http://testserver", http_client=http)
    yield dashboard
    await dashboard.close()
    await http.aclose()


class TestPolling:
    @pytest.mark.asyncio
    async def test_poll_stats(self, session):
        stats = await session.poll_stats()
        assert stats.totalUsers == 3
        assert session.hardware_connected is True
        assert session.success_rate == 70

    @pytest.mark.asyncio
    async def test_refresh_all_feeds_cache(self, session):
        await session.refresh_all()
        entries = session.cache.entries()
        assert [e.id for e in entries] == [1]
        assert session.cache.display_name(entries[0]) == "Eve"

    @pytest.mark.asyncio
    async def test_refresh_survives_http_errors(self, caplog):
        api = FakeApi()

        def flaky(request):
            if request.url.path == "/api/logs":
                return httpx.Response(500, json={"message": "Internal server error"})
            return api(request)

        async with httpx.AsyncClient(base_url="http://testserver", transport=httpx.MockTransport(flaky)) as http:
            dashboard = DashboardSession("http://testserver", http_client=http)
            await dashboard.refresh_all()

        assert dashboard.stats is not None
        assert dashboard.cache.entries() == []
        assert "Refresh via poll_logs failed" in caplog.text

    @pytest.mark.asyncio
    async def test_login_cookie_forwarded_to_websocket(self, session):
        await session.login("admin@example.com", "123456")
        assert session._cookie_header() == {"Cookie": "authintegrate_session=signed"}


class TestPushChannel:
    @pytest.mark.asyncio
    async def test_ws_url(self, session):
        assert session.ws_url == "ws://testserver/ws"
        secure = DashboardSession("https://example.com/", http_client=session._http)
        assert secure.ws_url == "wss://example.com/ws"

    @pytest.mark.asyncio
    async def test_messages_ignored_unless_open(self, session):
        message = {"type": "access_log", "log": make_log(7, T0)}

        assert session.handle_message(json.dumps(message)) is None
        assert session.cache.live == []

        session.state = ConnectionState.OPEN
        assert session.handle_message(json.dumps(message)) == MessageType.ACCESS_LOG
        assert [e.id for e in session.cache.live] == [7]

    @pytest.mark.asyncio
    async def test_hardware_status_message(self, session):
        session.state = ConnectionState.OPEN
        session.handle_message({"type": "hardware_status", "connected": True})
        assert session.hardware_connected is True

    @pytest.mark.asyncio
    async def test_unknown_message_type(self, session, caplog):
        session.state = ConnectionState.OPEN
        assert session.handle_message('{"type": "chat"}') is None
        assert "WebSocket message error" in caplog.text

    @pytest.mark.asyncio
    async def test_abnormal_close_logged_as_warning(self, session, caplog):
        session.hardware_connected = True
        with caplog.at_level(logging.INFO, logger="authintegrate.client.dashboard"):
            session._on_closed(1006)
        assert session.state == ConnectionState.CLOSED
        assert session.hardware_connected is False
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    @pytest.mark.asyncio
    async def test_clean_close_not_a_warning(self, session, caplog):
        session._on_closed(1000)
        assert not any(r.levelno >= logging.WARNING for r in caplog.records)

    @pytest.mark.asyncio
    async def test_push_applies_and_triggers_refresh(self, session, api, monkeypatch):
        ws = FakeWebSocket(
            [
                json.dumps({"type": "hardware_status", "connected": True}),
                json.dumps({"type": "access_log", "log": make_log(9, T0, user_id=5)}),
            ]
        )
        fake_connect = FakeConnect(ws)
        monkeypatch.setattr(dashboard_module, "connect", fake_connect)

        await session._run_websocket()
        await session._refresh_task

        assert fake_connect.url == "ws://testserver/ws"
        assert 9 in {e.id for e in session.cache.live}
        assert ("GET", "/api/logs") in api.calls
        assert session.state == ConnectionState.CLOSED
        assert session.cache.live[0].name == "Eve"

    @pytest.mark.asyncio
    async def test_close_cancels_polls(self, session, monkeypatch):
        monkeypatch.setattr(dashboard_module, "connect", FakeConnect(FakeWebSocket([])))
        session.stats_interval = session.logs_interval = session.users_interval = 60

        await session.start()
        await asyncio.sleep(0)
        tasks = list(session._tasks)
        await session.close()

        assert all(task.done() for task in tasks)
        assert session._tasks == []
