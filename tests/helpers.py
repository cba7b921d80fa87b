from wifi_selector.errors import TransportError
from wifi_selector.models import ConnectivityStatus, NetworkRecord

DOWN = TransportError("device unreachable")


def _resolve(value):
    if isinstance(value, BaseException):
        raise value
    return value


class ScriptedClient:
    """
    Stands in for DeviceClient. Each scripted sequence yields one answer per
    call; an exception instance in a sequence is raised instead of returned.
    """

    def __init__(self, trigger=True, scans=(), submit=None, statuses=()):
        self.trigger = trigger
        self.scans = iter(scans)
        self.submit = {"success": True} if submit is None else submit
        self.statuses = iter(statuses)
        self.calls = []

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    async def trigger_scan(self):
        self.calls.append(("trigger_scan",))
        return _resolve(self.trigger)

    async def fetch_scan(self):
        self.calls.append(("fetch_scan",))
        return _resolve(next(self.scans))

    async def submit_credentials(self, ssid, passphrase):
        self.calls.append(("submit_credentials", ssid, passphrase))
        return _resolve(self.submit)

    async def fetch_status(self):
        self.calls.append(("fetch_status",))
        return _resolve(next(self.statuses))


async def collect(stream):
    return [event async for event in stream]


def net(ssid, rssi=-50, secure=True):
    return NetworkRecord(ssid=ssid, signal_strength=rssi, secure=secure)


def status(connected=False, ssid=None, ip=None):
    return ConnectivityStatus(connected=connected, ssid=ssid, ip=ip)
