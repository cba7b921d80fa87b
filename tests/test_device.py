import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import unused_port

from wifi_selector.device import DeviceClient, normalize_base_url
from wifi_selector.errors import ApplicationError, TransportError
from wifi_selector.events import Results
from wifi_selector.models import ConnectivityStatus, NetworkRecord
from wifi_selector.scan import ScanOrchestrator


class FakeDevice:
    """Minimal stand-in for the firmware's HTTP handlers"""

    def __init__(self):
        self.scan_payload = []
        self.scan_started = True
        self.status = {"connected": False, "ssid": "", "ip": "0.0.0.0"}
        self.led_on = False
        self.received = []

    def app(self):
        app = web.Application()
        app.router.add_get("/status", self.handle_status)
        app.router.add_post("/scan_trigger", self.handle_scan_trigger)
        app.router.add_get("/scan", self.handle_scan)
        app.router.add_post("/connect", self.handle_connect)
        app.router.add_get("/led", self.handle_led)
        app.router.add_get("/slow", self.handle_slow)
        return app

    async def handle_status(self, request):
        return web.json_response(self.status)

    async def handle_scan_trigger(self, request):
        return web.json_response({"started": self.scan_started})

    async def handle_scan(self, request):
        return web.json_response(self.scan_payload)

    async def handle_connect(self, request):
        data = await request.json()
        self.received.append(data)
        if not data.get("ssid"):
            return web.json_response({"success": False, "message": "SSID required"}, status=400)
        return web.json_response({"success": True, "ip": "192.168.4.1"})

    async def handle_led(self, request):
        state = request.query.get("state")
        if state == "on":
            self.led_on = True
        elif state == "off":
            self.led_on = False
        return web.json_response({"on": self.led_on})

    async def handle_slow(self, request):
        await asyncio.sleep(1)
        return web.json_response({})


@pytest.fixture
async def device(aiohttp_server):
    fake = FakeDevice()
    server = await aiohttp_server(fake.app())
    fake.client = DeviceClient(f"http://{server.host}:{server.port}", request_timeout=2)
    return fake


async def test_fetch_status(device):
    device.status = {"connected": True, "ssid": "HomeNet", "ip": "192.168.1.20"}

    status = await device.client.fetch_status()

    assert status == ConnectivityStatus(True, "HomeNet", "192.168.1.20")
    assert status.is_provisioned


async def test_fetch_status_unset_ip(device):
    status = await device.client.fetch_status()

    assert not status.is_provisioned
    assert status.ssid is None


async def test_trigger_scan(device):
    assert await device.client.trigger_scan() is True
    device.scan_started = False
    assert await device.client.trigger_scan() is False


@pytest.mark.parametrize(
    "payload",
    [
        [{"_scanning": True}],
        [{"_scanning": True}, {"ssid": "Ghost", "rssi": -30, "secure": False}],
        {"status": "scanning"},
    ],
)
async def test_fetch_scan_sentinel(device, payload):
    device.scan_payload = payload

    assert await device.client.fetch_scan() is None


async def test_fetch_scan_results(device):
    device.scan_payload = [
        {"ssid": "Net1", "rssi": -40, "secure": True},
        {"ssid": "Cafe", "rssi": -82, "secure": False},
        {"rssi": -60},
    ]

    networks = await device.client.fetch_scan()

    assert networks == [NetworkRecord("Net1", -40, True), NetworkRecord("Cafe", -82, False)]


async def test_submit_credentials_payload(device):
    answer = await device.client.submit_credentials("HomeNet", "secret123")

    assert answer["success"] is True
    assert device.received == [{"ssid": "HomeNet", "pass": "secret123"}]


async def test_submit_credentials_rejected_with_error_status(device):
    with pytest.raises(ApplicationError) as excinfo:
        await device.client.submit_credentials("", "secret123")

    assert excinfo.value.message == "SSID required"


async def test_led(device):
    assert await device.client.get_led() is False
    assert await device.client.set_led(True) is True
    assert await device.client.toggle_led() is False
    assert device.led_on is False


async def test_non_json_answer_is_transport_error(aiohttp_server):
    async def rebooting(request):
        return web.Response(text="rebooting")

    app = web.Application()
    app.router.add_get("/status", rebooting)
    server = await aiohttp_server(app)
    client = DeviceClient(f"http://{server.host}:{server.port}")

    with pytest.raises(TransportError):
        await client.fetch_status()


async def test_http_error_is_transport_error(device):
    with pytest.raises(TransportError):
        await device.client._request("GET", "/missing")


async def test_timeout_is_transport_error(device):
    device.client.request_timeout = 0.1

    with pytest.raises(TransportError):
        await device.client._request("GET", "/slow")


async def test_unreachable_device_is_transport_error():
    client = DeviceClient(f"http://127.0.0.1:{unused_port()}", request_timeout=2)

    with pytest.raises(TransportError):
        await client.fetch_scan()


def test_normalize_base_url():
    assert normalize_base_url("192.168.4.1") == "http://192.168.4.1"
    assert normalize_base_url("http://esp32.local/") == "http://esp32.local"


async def test_non_utf8_ssid_does_not_break_scan(aiohttp_server):
    async def latin1_scan(request):
        body = b'[{"ssid":"Caf\xe9","rssi":-60,"secure":false},{"ssid":"Net1","rssi":-40,"secure":true}]'
        return web.Response(body=body, content_type="application/json")

    async def trigger(request):
        return web.json_response({"started": True})

    app = web.Application()
    app.router.add_get("/scan", latin1_scan)
    app.router.add_post("/scan_trigger", trigger)
    server = await aiohttp_server(app)
    client = DeviceClient(f"http://{server.host}:{server.port}")

    networks = await client.fetch_scan()
    assert [n.ssid for n in networks] == ["Caf\ufffd", "Net1"]

    events = [e async for e in ScanOrchestrator(client, poll_delay=0).start_scan()]
    assert events[-1] == Results(networks)
