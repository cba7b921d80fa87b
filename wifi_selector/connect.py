"""
Credential submission and the wait for the device to come back on the
target network.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from .config import CONNECT_MAX_ATTEMPTS, CONNECT_MAX_UNREACHABLE, POLL_DELAY
from .device import DeviceClient
from .errors import ApplicationError, OperationInProgress, TimeoutExceeded, TransportError, WiFiSelectorError
from .events import Cancelled, Connected, ConnectEvent, ConnectFailed, Saved, Submitting, TimedOut
from .polling import RetryBudget, wait_interval
from .status import StatusProbe

logger = logging.getLogger("WiFiSelector")

REQUEST_FAILED = "Request failed."


@dataclass
class ProvisioningAttempt:
    """Counters for one submit-and-wait cycle"""

    target_ssid: str
    attempts: RetryBudget
    unreachable: Optional[RetryBudget] = None

    @property
    def attempt_count(self) -> int:
        return self.attempts.used

    @property
    def deadline_attempts(self) -> int:
        return self.attempts.limit


class ConnectOrchestrator:
    """
    Submits credentials, then polls the status probe until the device reports
    a usable address.

    ``max_attempts`` bounds the polls the device answered without being
    connected. Polls that fail to reach it are not counted there, since the
    device is expected to drop off while it joins the new network; they are
    bounded separately by ``max_unreachable`` consecutive failures (None for
    no limit).
    """

    def __init__(
        self,
        client: DeviceClient,
        probe: Optional[StatusProbe] = None,
        poll_delay: float = POLL_DELAY,
        max_attempts: int = CONNECT_MAX_ATTEMPTS,
        max_unreachable: Optional[int] = CONNECT_MAX_UNREACHABLE,
    ):
        self.client = client
        self.probe = probe or StatusProbe(client)
        self.poll_delay = poll_delay
        self.max_attempts = max_attempts
        self.max_unreachable = max_unreachable
        self.attempt: Optional[ProvisioningAttempt] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def connect(
        self, ssid: str, passphrase: str, cancel: Optional[asyncio.Event] = None
    ) -> AsyncGenerator[ConnectEvent, None]:
        """
        Return the event stream for one provisioning run.

        An empty ``ssid`` raises ValueError here, before any request is made
        and without producing a stream.
        """
        if not ssid:
            raise ValueError("SSID required")
        if self._active:
            raise OperationInProgress("A connect operation is already in progress")
        return self._run(ssid, passphrase, cancel)

    async def _run(
        self, ssid: str, passphrase: str, cancel: Optional[asyncio.Event]
    ) -> AsyncGenerator[ConnectEvent, None]:
        if self._active:
            raise OperationInProgress("A connect operation is already in progress")
        self._active = True
        try:
            yield Submitting(ssid)
            logger.info(f"[CONNECT] Submitting credentials - SSID: {ssid}, Password: {'*' * len(passphrase)}")

            try:
                await self.client.submit_credentials(ssid, passphrase)
            except TransportError as e:
                logger.error(f"[CONNECT] Credential submission failed: {e}")
                yield ConnectFailed(REQUEST_FAILED)
                return
            except ApplicationError as e:
                logger.warning(f"[CONNECT] Device rejected credentials: {e.message}")
                yield ConnectFailed(e.message)
                return

            logger.info("[CONNECT] ✓ Credentials saved on device, waiting for it to join")
            yield Saved(ssid)

            self.attempt = ProvisioningAttempt(
                target_ssid=ssid,
                attempts=RetryBudget(self.max_attempts),
                unreachable=RetryBudget(self.max_unreachable) if self.max_unreachable is not None else None,
            )
            while True:
                if await wait_interval(self.poll_delay, cancel):
                    logger.info("[CONNECT] Connect wait cancelled")
                    yield Cancelled()
                    return

                try:
                    status = await self.probe.fetch_status()
                except TransportError as e:
                    logger.debug(f"[CONNECT] Waiting for connection... ({e})")
                    if self.attempt.unreachable is not None:
                        self.attempt.unreachable.consume()
                        if self.attempt.unreachable.exhausted:
                            logger.error(
                                f"[CONNECT] Device unreachable for {self.max_unreachable} consecutive polls"
                            )
                            yield TimedOut(ssid)
                            return
                    continue

                if self.attempt.unreachable is not None:
                    self.attempt.unreachable.reset()

                if status.is_provisioned:
                    logger.info(f"[CONNECT] ✓ Device joined {ssid} with IP {status.ip}")
                    yield Connected(status.ip, ssid)
                    return

                used = self.attempt.attempts.consume()
                if self.attempt.attempts.exhausted:
                    logger.warning(f"[CONNECT] Connection timed out after {used} status polls")
                    yield TimedOut(ssid)
                    return
                logger.info(f"[CONNECT] Not connected yet ({used}/{self.max_attempts})")
        finally:
            self.attempt = None
            self._active = False

    async def provision(self, ssid: str, passphrase: str, cancel: Optional[asyncio.Event] = None) -> str:
        """
        Run connect() to completion and return the device's new IP.

        Raises TransportError if the credentials could not be sent,
        ApplicationError if the device rejected them, TimeoutExceeded if it
        never reported a usable address and WiFiSelectorError when cancelled.
        """
        events = self.connect(ssid, passphrase, cancel)
        try:
            async for event in events:
                if isinstance(event, Connected):
                    return event.ip
                if isinstance(event, TimedOut):
                    raise TimeoutExceeded(f"{ssid}: device did not report a usable IP in time")
                if isinstance(event, ConnectFailed):
                    if event.message == REQUEST_FAILED:
                        raise TransportError(event.message)
                    raise ApplicationError(event.message)
                if isinstance(event, Cancelled):
                    raise WiFiSelectorError("Connect cancelled")
        finally:
            await events.aclose()
        raise WiFiSelectorError("Connect ended without a result")
