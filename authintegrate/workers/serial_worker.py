# =======================================================================================
# authintegrate/workers/serial_worker.py - Background Serial Worker
# =======================================================================================
import asyncio
import logging
import threading
import time
from typing import TYPE_CHECKING, Optional

import serial

from ..config import Config

if TYPE_CHECKING:
    from ..services.hardware_service import HardwareService

logger = logging.getLogger(__name__)

RECONNECT_DELAY = 3
LINE_TIMEOUT = 10


class SerialWorker:
    """
    Background reader for the fingerprint bridge on a serial port.

    The port is read on a daemon thread; each line is handed to the
    HardwareService on the application's event loop, so event handling
    stays on the loop like the HTTP path.
    """

    def __init__(self, hardware: "HardwareService", settings: Config):
        self.hardware = hardware
        self.settings = settings
        self.running = False
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Start the serial worker in a background thread. Must be called from the loop."""
        if not self._should_start():
            return

        self._loop = loop or asyncio.get_running_loop()
        self.running = True
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run_loop, name="serial-worker", daemon=True)
        self._thread.start()
        logger.info("[serial] Worker started")

    async def stop(self):
        """
        Stop the serial worker. The reader thread is joined off the loop so a
        line it is still handing to the loop can finish.
        """
        self.running = False
        self._stopped.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            await asyncio.to_thread(thread.join, self.settings.SERIAL_TIMEOUT + 1)
        logger.info("[serial] Worker stopped")

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _should_start(self) -> bool:
        if not self.settings.SERIAL_PORT:
            logger.warning("[serial] SERIAL_PORT not configured; skipping UART worker.")
            return False
        return True

    # ------------------------------------------------------------------
    # Loop bridging
    # ------------------------------------------------------------------
    def _submit(self, coro, timeout: float = LINE_TIMEOUT):
        """Run a coroutine on the app loop and wait for it from this thread."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout=timeout)

    def _set_connected(self, connected: bool):
        if not self.running:
            return
        try:
            self._submit(self.hardware.set_connected(connected))
        except Exception as e:
            logger.warning("[serial] Could not publish link state %s: %s", connected, e)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self):
        """Main serial communication loop."""
        while self.running:
            try:
                self._handle_serial_connection()
            except Exception as e:
                logger.warning("[serial] Connection error: %s, retrying in %ss", e, RECONNECT_DELAY)
                self._set_connected(False)
                self._stopped.wait(RECONNECT_DELAY)

    def _handle_serial_connection(self):
        """Open the port and forward every non-empty line."""
        logger.info("[serial] Opening %s @ %s", self.settings.SERIAL_PORT, self.settings.SERIAL_BAUD)

        with serial.Serial(
            self.settings.SERIAL_PORT, self.settings.SERIAL_BAUD, timeout=self.settings.SERIAL_TIMEOUT
        ) as ser:
            logger.info("[serial] Port open.")
            self._set_connected(True)

            while self.running:
                line = ser.readline().decode(errors="ignore").strip()
                if not line:
                    continue
                if not self.running:
                    break

                logger.debug("[serial] Received: %s", line)
                try:
                    reply = self._submit(self.hardware.handle_serial_line(line))
                except Exception as e:
                    logger.error("[serial] Error handling line %r: %s", line, e)
                    time.sleep(0.1)
                    continue

                if reply:
                    ser.write((reply + "\n").encode())
                    logger.debug("[serial] Sent: %s", reply)
