"""Connectivity status: the single-shot probe and the background refresher."""

import asyncio
import logging
from typing import Callable, Optional

from .config import STATUS_INTERVAL
from .device import DeviceClient
from .errors import TransportError
from .models import ConnectivityStatus

logger = logging.getLogger("WiFiSelector")

StatusSink = Callable[[ConnectivityStatus], None]


class StatusProbe:
    """One GET /status per call. Never retries; TransportError propagates."""

    def __init__(self, client: DeviceClient):
        self.client = client

    async def fetch_status(self) -> ConnectivityStatus:
        status = await self.client.fetch_status()
        logger.debug(f"[STATUS] connected={status.connected} ssid={status.ssid} ip={status.ip}")
        return status


class StatusRefresher:
    """
    Polls the probe every ``interval`` seconds for as long as it runs and hands
    each snapshot to ``sink``.

    A failed poll is skipped: the sink keeps showing whatever it was last
    given. The refresher owns no state besides its task, so it can run next
    to either orchestrator.
    """

    def __init__(self, probe: StatusProbe, sink: StatusSink, interval: float = STATUS_INTERVAL):
        self.probe = probe
        self.sink = sink
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> Optional[ConnectivityStatus]:
        try:
            status = await self.probe.fetch_status()
        except TransportError as e:
            logger.debug(f"[STATUS] Refresh skipped: {e}")
            return None
        try:
            self.sink(status)
        except Exception as e:
            logger.error(f"[STATUS] Status display failed: {e}")
        return status

    async def _run(self) -> None:
        while True:
            await self.refresh_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug(f"[STATUS] Background refresh started (every {self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("[STATUS] Background refresh stopped")
