#!/usr/bin/env python3
"""
wifi-selector - provision WiFi credentials on a headless device over its
HTTP control API.

Connect your computer to the device's access point, then run
``wifi-selector setup`` (or the individual ``scan`` / ``connect`` commands).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_config
from .connect import ConnectOrchestrator
from .console import ConsoleUI, SetupSession, ask_secret, run_connect, run_scan
from .device import DeviceClient
from .errors import TransportError
from .events import Connected, Results
from .scan import ScanOrchestrator
from .status import StatusProbe, StatusRefresher

logger = logging.getLogger("WiFiSelector")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    # stderr carries warnings only unless -v
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handlers: List[logging.Handler] = [console]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wifi-selector",
        description="Provision WiFi credentials on a headless device",
    )
    parser.add_argument("--device", dest="device_url", help="Device base URL (default: http://192.168.4.1)")
    parser.add_argument("--config", type=Path, help="JSON config file")
    parser.add_argument("--poll-delay", type=float, help="Seconds between scan/connect polls")
    parser.add_argument("--request-timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="Show the device's connectivity")
    status.add_argument("--watch", action="store_true", help="Keep refreshing until interrupted")

    sub.add_parser("scan", help="Scan for networks")

    connect = sub.add_parser("connect", help="Send credentials and wait for the device to join")
    connect.add_argument("ssid")
    connect.add_argument("--password", help="Passphrase (prompted for if omitted)")

    sub.add_parser("setup", help="Interactive scan, select and connect")

    led = sub.add_parser("led", help="Read or set the device's indicator LED")
    led.add_argument("state", nargs="?", choices=["on", "off", "toggle"])

    return parser


def resolve_config(args: argparse.Namespace) -> Dict[str, Any]:
    cfg = load_config(args.config)
    for key in ("device_url", "poll_delay", "request_timeout", "log_file"):
        value = getattr(args, key, None)
        if value is not None:
            cfg[key] = value
    return cfg


async def cmd_status(client: DeviceClient, cfg: Dict[str, Any], ui: ConsoleUI, watch: bool) -> int:
    probe = StatusProbe(client)
    if not watch:
        try:
            ui.show_status(await probe.fetch_status())
        except TransportError as e:
            ui.write([f"Device unreachable: {e}"])
            return 1
        return 0

    refresher = StatusRefresher(probe, ui.show_status, interval=cfg["status_interval"])
    refresher.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await refresher.stop()


async def cmd_led(client: DeviceClient, ui: ConsoleUI, state: Optional[str]) -> int:
    try:
        if state == "toggle":
            on = await client.toggle_led()
        elif state is not None:
            on = await client.set_led(state == "on")
        else:
            on = await client.get_led()
    except TransportError as e:
        ui.write([f"Device unreachable: {e}"])
        return 1
    ui.write(["LED is ON" if on else "LED is OFF"])
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = resolve_config(args)
    setup_logging(args.verbose, cfg["log_file"])

    logger.info(f"WiFi Selector talking to {cfg['device_url']}")
    client = DeviceClient(cfg["device_url"], request_timeout=cfg["request_timeout"])
    ui = ConsoleUI()
    scanner = ScanOrchestrator(client, poll_delay=cfg["poll_delay"], max_retries=cfg["scan_max_retries"])
    connector = ConnectOrchestrator(
        client,
        poll_delay=cfg["poll_delay"],
        max_attempts=cfg["connect_max_attempts"],
        max_unreachable=cfg["connect_max_unreachable"],
    )

    if args.command == "status":
        return await cmd_status(client, cfg, ui, args.watch)

    if args.command == "scan":
        event = await run_scan(scanner, ui)
        return 0 if isinstance(event, Results) else 1

    if args.command == "connect":
        password = args.password
        if password is None:
            password = await ask_secret(f"Password for {args.ssid}: ")
        try:
            event = await run_connect(connector, ui, args.ssid, password)
        except ValueError as e:
            ui.write([f"Error: {e}"])
            return 1
        return 0 if isinstance(event, Connected) else 1

    if args.command == "setup":
        refresher = StatusRefresher(StatusProbe(client), ui.show_status, interval=cfg["status_interval"])
        session = SetupSession(scanner, connector, refresher, ui)
        return await session.run()

    if args.command == "led":
        return await cmd_led(client, ui, args.state)

    return 2


def run(argv: Optional[List[str]] = None) -> int:
    try:
        return asyncio.run(main(argv))
    except (KeyboardInterrupt, EOFError):
        print("\nAborted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(run())
