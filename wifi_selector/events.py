"""Events emitted by the scan and connect orchestrators, in the order they happen."""

from dataclasses import dataclass, field
from typing import List, Union

from .models import NetworkRecord


# Scan stream

@dataclass(frozen=True)
class Scanning:
    # 0 while the device is reachable, n while waiting out the n-th transport failure
    attempt: int = 0
    max_retries: int = 0


@dataclass(frozen=True)
class Results:
    networks: List[NetworkRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ScanFailed:
    message: str


# Connect stream

@dataclass(frozen=True)
class Submitting:
    ssid: str


@dataclass(frozen=True)
class Saved:
    ssid: str


@dataclass(frozen=True)
class Connected:
    ip: str
    ssid: str = ""

    @property
    def url(self) -> str:
        return f"http://{self.ip}/"


@dataclass(frozen=True)
class TimedOut:
    ssid: str = ""


@dataclass(frozen=True)
class ConnectFailed:
    message: str


# Either stream

@dataclass(frozen=True)
class Cancelled:
    pass


ScanEvent = Union[Scanning, Results, ScanFailed, Cancelled]
ConnectEvent = Union[Submitting, Saved, Connected, TimedOut, ConnectFailed, Cancelled]

SCAN_TERMINAL = (Results, ScanFailed, Cancelled)
CONNECT_TERMINAL = (Connected, TimedOut, ConnectFailed, Cancelled)
