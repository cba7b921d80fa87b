"""
Console front end: turns orchestrator events and status snapshots into text
and runs the interactive setup flow.
"""

import asyncio
import getpass
import sys
from typing import Awaitable, Callable, List, Optional, TextIO

from .connect import ConnectOrchestrator
from .events import (
    Cancelled,
    Connected,
    ConnectEvent,
    ConnectFailed,
    Results,
    Saved,
    ScanEvent,
    ScanFailed,
    Scanning,
    Submitting,
    TimedOut,
)
from .models import ConnectivityStatus, NetworkRecord
from .scan import ScanOrchestrator
from .status import StatusRefresher


Prompt = Callable[[str], Awaitable[str]]


def format_status(status: ConnectivityStatus) -> str:
    if status.connected:
        return f"Connected to {status.ssid} ({status.ip})"
    return "Not connected"


def format_network(network: NetworkRecord) -> str:
    line = f"{network.ssid} ({network.signal_strength} dBm)"
    if network.secure:
        line += " [secure]"
    return line


def render_scan_event(event: ScanEvent) -> List[str]:
    if isinstance(event, Scanning):
        if event.attempt > 0:
            return [f"Scanning... (Waiting for connection... {event.attempt}/{event.max_retries})"]
        return ["Scanning..."]
    if isinstance(event, Results):
        if not event.networks:
            return ["No networks found."]
        return [f"{i:>2}. {format_network(net)}" for i, net in enumerate(event.networks, 1)]
    if isinstance(event, ScanFailed):
        return [event.message]
    if isinstance(event, Cancelled):
        return ["Cancelled."]
    raise TypeError(f"Not a scan event: {event!r}")


def render_connect_event(event: ConnectEvent) -> List[str]:
    if isinstance(event, Submitting):
        return ["Connecting..."]
    if isinstance(event, Saved):
        return ["Credentials saved. Connecting..."]
    if isinstance(event, Connected):
        return [
            "Connection Successful!",
            f"New IP: {event.ip}",
            f"Please switch your computer to the WiFi network {event.ssid}.",
            f"Then open {event.url}",
        ]
    if isinstance(event, TimedOut):
        return ["Connection timed out. Please check credentials and try again."]
    if isinstance(event, ConnectFailed):
        return [f"Error: {event.message}"]
    if isinstance(event, Cancelled):
        return ["Cancelled."]
    raise TypeError(f"Not a connect event: {event!r}")


class ConsoleUI:
    """Writes rendered lines to a text stream. Status lines print only on change."""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.last_status: Optional[ConnectivityStatus] = None

    def write(self, lines: List[str]) -> None:
        for line in lines:
            print(line, file=self.out)
        self.out.flush()

    def show_status(self, status: ConnectivityStatus) -> None:
        if status == self.last_status:
            return
        self.last_status = status
        self.write([f"[status] {format_status(status)}"])

    def show_scan(self, event: ScanEvent) -> None:
        self.write(render_scan_event(event))

    def show_connect(self, event: ConnectEvent) -> None:
        self.write(render_connect_event(event))


async def run_scan(scanner: ScanOrchestrator, ui: ConsoleUI, cancel: Optional[asyncio.Event] = None) -> ScanEvent:
    """Render a whole scan and return its terminal event"""
    event: Optional[ScanEvent] = None
    async for event in scanner.start_scan(cancel):
        ui.show_scan(event)
    return event


async def run_connect(
    connector: ConnectOrchestrator,
    ui: ConsoleUI,
    ssid: str,
    passphrase: str,
    cancel: Optional[asyncio.Event] = None,
) -> ConnectEvent:
    """Render a whole connect run and return its terminal event"""
    event: Optional[ConnectEvent] = None
    async for event in connector.connect(ssid, passphrase, cancel):
        ui.show_connect(event)
    return event


async def ask(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


async def ask_secret(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, getpass.getpass, prompt)


class SetupSession:
    """
    Interactive provisioning: scan on start, pick a network (or type an SSID),
    enter the password, connect. Status keeps refreshing in the background.
    """

    def __init__(
        self,
        scanner: ScanOrchestrator,
        connector: ConnectOrchestrator,
        refresher: Optional[StatusRefresher],
        ui: ConsoleUI,
        prompt: Prompt = ask,
        secret_prompt: Prompt = ask_secret,
    ):
        self.scanner = scanner
        self.connector = connector
        self.refresher = refresher
        self.ui = ui
        self.prompt = prompt
        self.secret_prompt = secret_prompt
        self.networks: List[NetworkRecord] = []

    async def scan(self) -> None:
        event = await run_scan(self.scanner, self.ui)
        if isinstance(event, Results):
            self.networks = list(event.networks)

    def select(self, choice: str) -> Optional[str]:
        """Map the user's answer to an SSID: a list number, or the SSID typed out"""
        choice = choice.strip()
        if choice.isdigit():
            index = int(choice)
            if 1 <= index <= len(self.networks):
                return self.networks[index - 1].ssid
            return None
        return choice or None

    async def run(self) -> int:
        if self.refresher is not None:
            self.refresher.start()
        try:
            await self.scan()
            while True:
                choice = await self.prompt("Network number or SSID ('r' to rescan, 'q' to quit): ")
                choice = choice.strip()
                if choice.lower() == "q":
                    return 1
                if choice.lower() == "r":
                    await self.scan()
                    continue
                ssid = self.select(choice)
                if not ssid:
                    self.ui.write(["Please pick a number from the list or type an SSID."])
                    continue

                passphrase = await self.secret_prompt(f"Password for {ssid}: ")
                event = await run_connect(self.connector, self.ui, ssid, passphrase)
                if isinstance(event, Connected):
                    return 0
        finally:
            if self.refresher is not None:
                await self.refresher.stop()
