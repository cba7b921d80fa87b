"""
HTTP client for the device control API.

One coroutine per endpoint. Every call opens its own ClientSession: the
device's access point restarts under us, and a pooled keep-alive
connection to the old AP is useless after that.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .config import DEVICE_URL, REQUEST_TIMEOUT
from .errors import ApplicationError, TransportError
from .models import ConnectivityStatus, NetworkRecord, is_scanning_sentinel, parse_scan_results

logger = logging.getLogger("WiFiSelector")


def normalize_base_url(url: str) -> str:
    url = url.strip()
    if "://" not in url:
        url = f"http://{url}"
    return url.rstrip("/")


class DeviceClient:
    """Talks to /status, /scan_trigger, /scan, /connect and /led on one device"""

    def __init__(self, base_url: str = DEVICE_URL, request_timeout: float = REQUEST_TIMEOUT):
        self.base_url = normalize_base_url(base_url)
        self.request_timeout = request_timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
        accept_error_body: bool = False,
    ) -> Any:
        """
        Perform one round trip and return the decoded JSON body.

        Anything that prevents a well-formed JSON answer is a TransportError.
        With ``accept_error_body`` a non-2xx answer that still carries a JSON
        body is returned as-is, so the caller can read the device's message.
        """
        url = self._url(path)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                ) as resp:
                    text = await resp.text(errors="replace")
                    if resp.status >= 400 and not accept_error_body:
                        raise TransportError(f"{method} {path} returned HTTP {resp.status}")
                    try:
                        return json.loads(text)
                    except ValueError:
                        raise TransportError(
                            f"{method} {path} returned HTTP {resp.status} with a non-JSON body"
                        ) from None
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {path} timed out after {self.request_timeout}s") from e

    async def fetch_status(self) -> ConnectivityStatus:
        data = await self._request("GET", "/status")
        try:
            return ConnectivityStatus.from_json(data)
        except ValueError as e:
            raise TransportError(f"Malformed /status response: {e}") from e

    async def trigger_scan(self) -> bool:
        """Ask the device to start an asynchronous scan; True if it accepted"""
        data = await self._request("POST", "/scan_trigger")
        return isinstance(data, dict) and bool(data.get("started", False))

    async def fetch_scan(self) -> Optional[List[NetworkRecord]]:
        """
        Return the last completed scan, or None while the device is still
        scanning.
        """
        data = await self._request("GET", "/scan")
        if is_scanning_sentinel(data):
            return None
        try:
            return parse_scan_results(data)
        except ValueError as e:
            raise TransportError(f"Malformed /scan response: {e}") from e

    async def submit_credentials(self, ssid: str, passphrase: str) -> Dict[str, Any]:
        """
        POST the credentials. Returns the device's answer on success and
        raises ApplicationError when it reports ``success: false``.
        """
        data = await self._request(
            "POST",
            "/connect",
            payload={"ssid": ssid, "pass": passphrase},
            accept_error_body=True,
        )
        if not isinstance(data, dict) or not data.get("success"):
            message = data.get("message") if isinstance(data, dict) else None
            raise ApplicationError(message or "Unknown")
        return data

    async def get_led(self) -> bool:
        data = await self._request("GET", "/led")
        return isinstance(data, dict) and bool(data.get("on", False))

    async def set_led(self, on: bool) -> bool:
        data = await self._request("GET", "/led", params={"state": "on" if on else "off"})
        return isinstance(data, dict) and bool(data.get("on", False))

    async def toggle_led(self) -> bool:
        current = await self.get_led()
        logger.info(f"[LED] Currently {'on' if current else 'off'}, switching")
        return await self.set_led(not current)
