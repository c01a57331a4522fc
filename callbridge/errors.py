"""Bridge error types."""


class BridgeError(Exception):
    """Base class for bridge errors."""


class UpstreamConnectError(BridgeError, ConnectionError):
    """The realtime model connection could not be opened."""


class MalformedMessageError(BridgeError, ValueError):
    """An inbound WebSocket message could not be parsed."""
