"""
Data shapes exchanged with the device.

Everything here is rebuilt from a fresh response on each use; nothing is
persisted between operations.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger("WiFiSelector")

# Address reported by the device before DHCP has completed
UNSET_IP = "0.0.0.0"


@dataclass(frozen=True)
class ConnectivityStatus:
    connected: bool
    ssid: Optional[str] = None
    ip: Optional[str] = None

    @property
    def has_usable_ip(self) -> bool:
        return bool(self.ip) and self.ip != UNSET_IP

    @property
    def is_provisioned(self) -> bool:
        """Connected AND holding a real address; the only success predicate"""
        return self.connected and self.has_usable_ip

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ConnectivityStatus":
        if not isinstance(data, dict):
            raise ValueError(f"status payload must be an object, got {type(data).__name__}")
        return cls(
            connected=bool(data.get("connected", False)),
            ssid=data.get("ssid") or None,
            ip=data.get("ip") or None,
        )


@dataclass(frozen=True)
class NetworkRecord:
    ssid: str
    signal_strength: int = 0
    secure: bool = False
    scanning: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "NetworkRecord":
        if data.get("_scanning"):
            return cls(ssid="", scanning=True)
        ssid = data["ssid"]
        if not isinstance(ssid, str):
            raise TypeError(f"ssid must be a string, got {type(ssid).__name__}")
        return cls(
            ssid=ssid,
            signal_strength=int(data.get("rssi", 0)),
            secure=bool(data.get("secure", False)),
        )


def is_scanning_sentinel(payload: Any) -> bool:
    """
    True when a /scan response means "results not ready yet".

    The list form is decided by its first element only: a leading
    ``_scanning`` record voids the whole list whatever follows it. Some
    firmware builds answer ``{"status": "scanning"}`` instead.
    """
    if isinstance(payload, dict):
        return payload.get("status") == "scanning"
    if isinstance(payload, list) and payload:
        first = payload[0]
        return isinstance(first, dict) and bool(first.get("_scanning"))
    return False


def parse_scan_results(payload: Any) -> List[NetworkRecord]:
    """Turn a real (non-sentinel) /scan list into records, skipping malformed entries"""
    if not isinstance(payload, list):
        raise ValueError(f"scan payload must be a list, got {type(payload).__name__}")
    networks = []
    for entry in payload:
        try:
            record = NetworkRecord.from_json(entry)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[SCAN] Skipping malformed network entry {entry!r}: {e}")
            continue
        if record.scanning:
            logger.warning(f"[SCAN] Skipping stray scanning marker {entry!r}")
            continue
        networks.append(record)
    return networks
