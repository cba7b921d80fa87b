"""Client-side WiFi provisioning for headless devices with an HTTP control API."""

from .connect import ConnectOrchestrator, ProvisioningAttempt
from .device import DeviceClient
from .errors import (
    ApplicationError,
    OperationInProgress,
    TimeoutExceeded,
    TransportError,
    WiFiSelectorError,
)
from .events import (
    Cancelled,
    Connected,
    ConnectFailed,
    Results,
    Saved,
    ScanFailed,
    Scanning,
    Submitting,
    TimedOut,
)
from .models import ConnectivityStatus, NetworkRecord
from .scan import ScanOrchestrator
from .status import StatusProbe, StatusRefresher

__version__ = "0.1.0"

__all__ = [
    "ApplicationError",
    "Cancelled",
    "ConnectFailed",
    "ConnectOrchestrator",
    "Connected",
    "ConnectivityStatus",
    "DeviceClient",
    "NetworkRecord",
    "OperationInProgress",
    "ProvisioningAttempt",
    "Results",
    "Saved",
    "ScanFailed",
    "ScanOrchestrator",
    "Scanning",
    "StatusProbe",
    "StatusRefresher",
    "Submitting",
    "TimedOut",
    "TimeoutExceeded",
    "TransportError",
    "WiFiSelectorError",
]
