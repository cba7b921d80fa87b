"""Error taxonomy shared by the device client and the orchestrators."""


class WiFiSelectorError(Exception):
    """Base class for every error raised by wifi_selector"""


class TransportError(WiFiSelectorError):
    """The HTTP round trip to the device did not complete"""


class ApplicationError(WiFiSelectorError):
    """The device answered, but reported a logical failure"""

    def __init__(self, message: str = "Unknown"):
        super().__init__(message)
        self.message = message


class TimeoutExceeded(WiFiSelectorError):
    """A bounded poll budget was exhausted"""


class OperationInProgress(WiFiSelectorError):
    """An orchestrator was asked to start while its previous run is active"""
