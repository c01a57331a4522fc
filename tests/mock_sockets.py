"""In-memory sockets and connector for bridge tests."""

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Optional

from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

_CLOSE = object()
_ERROR = object()


class FakeSocket:
    """WebSocket stand-in: feed inbound frames, inspect outbound ones."""

    def __init__(self, name: str = "socket") -> None:
        self.name = name
        self.sent: list[str] = []
        self.close_calls = 0
        self.close_code: Optional[int] = None
        self._closed = False
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, message: str) -> None:
        if self._closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls += 1
        if self.close_code is None:
            self.close_code = code
        self._closed = True
        self._incoming.put_nowait(_CLOSE)

    def __aiter__(self) -> AsyncIterator[str | bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str | bytes]:
        while True:
            item = await self._incoming.get()
            if item is _CLOSE:
                return
            if item is _ERROR:
                raise ConnectionClosedError(None, None)
            yield item

    # Test controls

    def feed(self, message: str | bytes | dict) -> None:
        """Queue an inbound frame (dicts are JSON-encoded)."""
        if isinstance(message, dict):
            message = json.dumps(message)
        self._incoming.put_nowait(message)

    def remote_close(self) -> None:
        """Simulate the peer closing cleanly."""
        self._closed = True
        self._incoming.put_nowait(_CLOSE)

    def remote_error(self) -> None:
        """Simulate an abnormal closure (network reset)."""
        self._closed = True
        self._incoming.put_nowait(_ERROR)

    def sent_json(self) -> list[dict]:
        return [json.loads(m) for m in self.sent]

    def sent_types(self) -> list[str]:
        return [m.get("type") or m.get("event") for m in self.sent_json()]


class MockConnector:
    """Upstream connector returning a FakeSocket, or raising a given error."""

    def __init__(
        self,
        socket: Optional[FakeSocket] = None,
        error: Optional[Exception] = None
    ) -> None:
        self.socket = socket or FakeSocket("model")
        self.error = error
        self.connect_calls = 0

    async def connect(self) -> FakeSocket:
        self.connect_calls += 1
        if self.error is not None:
            raise self.error
        return self.socket


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Wait until predicate() is true, yielding to the event loop."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)
