"""Base protocols for the model-side connection."""

from abc import abstractmethod
from typing import AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class MessageSocket(Protocol):
    """The slice of a WebSocket connection the bridge uses.

    ``websockets`` client and server connections satisfy it; tests provide
    in-memory fakes.
    """

    @abstractmethod
    async def send(self, message: str) -> None:
        """Send one text frame.

        Raises:
            websockets.exceptions.ConnectionClosed: If the socket is closed
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the socket with a WebSocket close code. Safe to call more than once."""
        ...

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[str | bytes]:
        """Iterate over received frames until the socket closes.

        Raises:
            websockets.exceptions.ConnectionClosedError: On abnormal closure
        """
        ...


@runtime_checkable
class UpstreamConnector(Protocol):
    """Factory for one model connection per inbound call."""

    @abstractmethod
    async def connect(self) -> MessageSocket:
        """Open a new model connection.

        Returns:
            A fully open socket

        Raises:
            UpstreamConnectError: If the connection cannot be established
        """
        ...
