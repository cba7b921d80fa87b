"""
Scan orchestration: trigger an asynchronous scan on the device and harvest
the results, riding out the access point restart the trigger itself causes.
"""

import asyncio
import logging
from typing import AsyncGenerator, List, Optional

from .config import POLL_DELAY, SCAN_MAX_RETRIES
from .device import DeviceClient
from .errors import ApplicationError, OperationInProgress, TimeoutExceeded, TransportError, WiFiSelectorError
from .events import Cancelled, Results, ScanEvent, ScanFailed, Scanning
from .models import NetworkRecord
from .polling import RetryBudget, wait_interval

logger = logging.getLogger("WiFiSelector")

SCAN_NOT_STARTED = "Scan failed to start."
SCAN_FETCH_FAILED = "Error fetching results. Please reload."


class ScanOrchestrator:
    """
    Drives one scan at a time.

    Only transport failures count against ``max_retries``; a "still scanning"
    answer proves the device is reachable, so it resets the count and may
    repeat any number of times. Concurrent ``start_scan()`` calls on the same
    instance are refused with OperationInProgress.
    """

    def __init__(
        self,
        client: DeviceClient,
        poll_delay: float = POLL_DELAY,
        max_retries: int = SCAN_MAX_RETRIES,
    ):
        self.client = client
        self.poll_delay = poll_delay
        self.max_retries = max_retries
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    async def start_scan(self, cancel: Optional[asyncio.Event] = None) -> AsyncGenerator[ScanEvent, None]:
        if self._active:
            raise OperationInProgress("A scan is already in progress")
        self._active = True
        try:
            yield Scanning(0, self.max_retries)

            try:
                started = await self.client.trigger_scan()
            except TransportError as e:
                # Starting a scan knocks the soft-AP over; assume it started.
                logger.info(f"[SCAN] Scan trigger failed (AP restart?), polling anyway: {e}")
            else:
                if not started:
                    logger.warning("[SCAN] Device refused to start a scan")
                    yield ScanFailed(SCAN_NOT_STARTED)
                    return
                logger.info("[SCAN] ✓ Scan started on device")

            retries = RetryBudget(self.max_retries)
            while True:
                if await wait_interval(self.poll_delay, cancel):
                    logger.info("[SCAN] Scan cancelled")
                    yield Cancelled()
                    return

                try:
                    networks = await self.client.fetch_scan()
                except TransportError as e:
                    attempt = retries.consume()
                    if retries.exhausted:
                        logger.error(f"[SCAN] Giving up after {self.max_retries} failed polls: {e}")
                        yield ScanFailed(SCAN_FETCH_FAILED)
                        return
                    logger.info(f"[SCAN] Poll error, retrying ({attempt}/{self.max_retries}): {e}")
                    yield Scanning(attempt, self.max_retries)
                    continue

                if networks is None:
                    retries.reset()
                    logger.debug("[SCAN] Device still scanning")
                    yield Scanning(0, self.max_retries)
                    continue

                logger.info(f"[SCAN] ✓ Scan complete: {len(networks)} network(s)")
                yield Results(networks)
                return
        finally:
            self._active = False

    async def scan(self, cancel: Optional[asyncio.Event] = None) -> List[NetworkRecord]:
        """
        Run a scan to completion and return the networks found.

        Raises ApplicationError when the device refuses to start scanning,
        TimeoutExceeded when the retry budget runs out and WiFiSelectorError
        when cancelled.
        """
        events = self.start_scan(cancel)
        try:
            async for event in events:
                if isinstance(event, Results):
                    return list(event.networks)
                if isinstance(event, ScanFailed):
                    if event.message == SCAN_NOT_STARTED:
                        raise ApplicationError(event.message)
                    raise TimeoutExceeded(event.message)
                if isinstance(event, Cancelled):
                    raise WiFiSelectorError("Scan cancelled")
        finally:
            await events.aclose()
        raise WiFiSelectorError("Scan ended without a result")
