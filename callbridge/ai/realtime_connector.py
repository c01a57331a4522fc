"""OpenAI Realtime API connector.

Opens one WebSocket per call to the realtime endpoint::

    wss://api.openai.com/v1/realtime?model=<model>
    Authorization: Bearer <api key>
    OpenAI-Beta: realtime=v1

The connection is returned only once the handshake has completed; on any
failure nothing is left open.
"""

import asyncio
from typing import Optional
from urllib.parse import urlencode

import structlog
import websockets
from websockets.asyncio.client import ClientConnection

from callbridge.errors import UpstreamConnectError


class RealtimeConnector:
    """Connector for the OpenAI Realtime WebSocket API."""

    # Realtime API WebSocket endpoint
    WS_URL = "wss://api.openai.com/v1/realtime"
    PROTOCOL_VERSION = "realtime=v1"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-realtime-preview",
        url: str = WS_URL,
        connect_timeout: float = 10.0
    ) -> None:
        """Initialize connector.

        Args:
            api_key: OpenAI API key
            model: Realtime model identifier
            url: Realtime endpoint, without query string
            connect_timeout: Seconds to wait for the handshake (0 disables)

        Raises:
            ValueError: If no API key is provided
        """
        if not api_key:
            raise ValueError("OpenAI API key not provided")

        self._api_key = api_key
        self._model = model
        self._url = url
        self._connect_timeout = connect_timeout

        self._logger = structlog.get_logger(__name__)

    @property
    def model(self) -> str:
        """Realtime model identifier."""
        return self._model

    @property
    def ws_url(self) -> str:
        """Full endpoint URL including the model query parameter."""
        return f"{self._url}?{urlencode({'model': self._model})}"

    @property
    def headers(self) -> dict[str, str]:
        """Handshake headers carrying the credential and protocol version."""
        return {
            "Authorization": f"Bearer {self._api_key}",
            "OpenAI-Beta": self.PROTOCOL_VERSION,
        }

    async def connect(self) -> ClientConnection:
        """Open a realtime connection.

        Returns:
            Open WebSocket connection

        Raises:
            UpstreamConnectError: If the connection cannot be established
        """
        timeout = self._connect_timeout or None

        self._logger.info("Connecting to realtime model", model=self._model, timeout=timeout)

        try:
            async with asyncio.timeout(timeout):
                ws = await websockets.connect(
                    self.ws_url,
                    additional_headers=self.headers,
                    open_timeout=timeout,
                    max_size=None
                )
        except TimeoutError as e:
            raise UpstreamConnectError(
                f"Timed out connecting to realtime model after {timeout}s"
            ) from e
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise UpstreamConnectError(f"Failed to connect to realtime model: {e}") from e

        self._logger.info("Realtime model connected", model=self._model)
        return ws
