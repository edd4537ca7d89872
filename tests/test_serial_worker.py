"""Serial bridge: lines read on the worker thread are handled on the app loop."""

import asyncio
import time

import pytest
import serial

from authintegrate.models.enums import Topic
from authintegrate.services.event_bus import EventBus
from authintegrate.services.hardware_service import HardwareService
from authintegrate.workers.serial_worker import SerialWorker


class FakePort:
    def __init__(self, worker, lines):
        self.worker = worker
        self.lines = list(lines)
        self.written = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def readline(self):
        if self.lines:
            return self.lines.pop(0)
        self.worker.running = False
        return b""

    def write(self, data):
        self.written.append(data)


class IdlePort(FakePort):
    """Keeps the port open with read timeouts once its lines are used up."""

    def readline(self):
        if self.lines:
            return self.lines.pop(0)
        time.sleep(0.01)
        return b""


async def _wait_for_thread(worker, attempts=300):
    for _ in range(attempts):
        if worker._thread is None or not worker._thread.is_alive():
            return
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_lines_forwarded_and_acknowledged(storage, settings, monkeypatch):
    storage.create_hardware_user(5, 55)
    bus = EventBus()
    seen = []
    bus.subscribe(Topic.ACCESS_EVENT, seen.append)
    hardware = HardwareService(bus, storage, connected=False)
    worker = SerialWorker(hardware, settings)
    port = FakePort(worker, [b"LOGIN,5,GRANTED\r\n", b"\n", b"nonsense\n"])
    monkeypatch.setattr(serial, "Serial", lambda *args, **kwargs: port)

    worker.start()
    await _wait_for_thread(worker)
    await worker.stop()

    assert port.written == [b"Access logged successfully\n"]
    assert [event.outcome for event in seen] == ["GRANTED"]
    assert hardware.is_connected() is True


@pytest.mark.asyncio
async def test_not_started_without_port(storage, settings):
    settings.SERIAL_PORT = ""
    worker = SerialWorker(HardwareService(EventBus(), storage, connected=False), settings)

    worker.start()

    assert worker.running is False
    assert worker._thread is None


@pytest.mark.asyncio
async def test_stop_lets_line_in_flight_finish(storage, settings, monkeypatch):
    storage.create_hardware_user(5, 55)
    bus = EventBus()
    started = asyncio.Event()

    async def slow_subscriber(event):
        started.set()
        await asyncio.sleep(0.2)

    bus.subscribe(Topic.ACCESS_EVENT, slow_subscriber)
    worker = SerialWorker(HardwareService(bus, storage, connected=True), settings)
    port = IdlePort(worker, [b"LOGIN,5,GRANTED\n"])
    monkeypatch.setattr(serial, "Serial", lambda *args, **kwargs: port)

    worker.start()
    await asyncio.wait_for(started.wait(), timeout=2)
    thread = worker._thread

    loop = asyncio.get_running_loop()
    began = loop.time()
    await worker.stop()

    assert loop.time() - began < 1.0
    assert not thread.is_alive()
    assert port.written == [b"Access logged successfully\n"]


@pytest.mark.asyncio
async def test_port_failure_marks_hardware_disconnected(storage, settings, monkeypatch):
    bus = EventBus()
    status = []
    bus.subscribe(Topic.HARDWARE_STATUS_CHANGE, status.append)
    hardware = HardwareService(bus, storage, connected=True)
    worker = SerialWorker(hardware, settings)

    def unplugged(*args, **kwargs):
        raise serial.SerialException("could not open port /dev/ttyUSB0")

    monkeypatch.setattr(serial, "Serial", unplugged)

    worker.start()
    for _ in range(200):
        if status:
            break
        await asyncio.sleep(0.01)

    loop = asyncio.get_running_loop()
    began = loop.time()
    await worker.stop()

    assert status == [False]
    assert hardware.is_connected() is False
    # the reconnect wait is cut short by stop()
    assert loop.time() - began < 1.0
