"""
Runtime configuration.

Defaults below, then an optional JSON config file, then WIFI_SELECTOR_*
environment variables. The CLI applies its own flags on top.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("WiFiSelector")

# ESP32 soft-AP address the device serves its control API on
DEVICE_URL = "http://192.168.4.1"
CONFIG_FILE = Path.home() / ".config" / "wifi-selector" / "config.json"

STATUS_INTERVAL = 5.0
POLL_DELAY = 2.0
SCAN_MAX_RETRIES = 20
CONNECT_MAX_ATTEMPTS = 20
# ~5 minutes of the device being unreachable at POLL_DELAY
CONNECT_MAX_UNREACHABLE = 150
REQUEST_TIMEOUT = 10.0

ENV_PREFIX = "WIFI_SELECTOR_"

DEFAULTS: Dict[str, Any] = {
    "device_url": DEVICE_URL,
    "status_interval": STATUS_INTERVAL,
    "poll_delay": POLL_DELAY,
    "scan_max_retries": SCAN_MAX_RETRIES,
    "connect_max_attempts": CONNECT_MAX_ATTEMPTS,
    "connect_max_unreachable": CONNECT_MAX_UNREACHABLE,
    "request_timeout": REQUEST_TIMEOUT,
    "log_file": None,
}

_CASTS = {
    "device_url": str,
    "status_interval": float,
    "poll_delay": float,
    "scan_max_retries": int,
    "connect_max_attempts": int,
    "connect_max_unreachable": int,
    "request_timeout": float,
    "log_file": str,
}


# Keys where null is a meaningful value rather than a mistake
NULLABLE = ("log_file", "connect_max_unreachable")


def _coerce(key: str, value: Any) -> Any:
    if value is None:
        if key in NULLABLE:
            return None
        raise ValueError(f"{key} cannot be null")
    return _CASTS[key](value)


def load_config(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Load the config file (if any) and environment overrides on top of DEFAULTS"""
    cfg = dict(DEFAULTS)
    environ = os.environ if environ is None else environ
    config_file = Path(path) if path else CONFIG_FILE

    try:
        if config_file.exists():
            with open(config_file, "r") as f:
                data = json.load(f)
            for key, value in data.items():
                if key not in cfg:
                    logger.debug(f"Ignoring unknown config key: {key}")
                    continue
                try:
                    cfg[key] = _coerce(key, value)
                except (ValueError, TypeError) as e:
                    logger.warning(f"Ignoring config value {key}={value!r}: {e}")
            logger.debug(f"Loaded config from {config_file}")
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load config file {config_file}: {e}")

    for key in cfg:
        raw = environ.get(ENV_PREFIX + key.upper())
        if raw is None or raw == "":
            continue
        try:
            cfg[key] = _coerce(key, raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {ENV_PREFIX + key.upper()}={raw!r}")

    cfg["device_url"] = cfg["device_url"].rstrip("/")
    return cfg
