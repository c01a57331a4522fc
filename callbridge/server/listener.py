"""Inbound WebSocket listener for telephony media streams.

Accepts upgrades on a single path and runs one SessionBridge per
connection. Sessions are independent: a failing session never stops the
listener.
"""

import asyncio
from http import HTTPStatus
from typing import Optional
from urllib.parse import urlsplit

import structlog
import websockets
from websockets.asyncio.server import Server, ServerConnection
from websockets.http11 import Request, Response

from callbridge.ai.connector_base import UpstreamConnector
from callbridge.bridge.session import SessionBridge
from callbridge.config import Config
from callbridge.core.agent_config import DEFAULT_INSTRUCTIONS
from callbridge.core.transcoder import FrameTranscoder
from callbridge.utils.codec import Codec


class InboundListener:
    """WebSocket server that hands each telephony connection to a SessionBridge."""

    def __init__(
        self,
        settings: Config,
        connector: UpstreamConnector,
        instructions: str = DEFAULT_INSTRUCTIONS
    ) -> None:
        """Initialize listener.

        Args:
            settings: Application configuration
            connector: Model connection factory shared by all sessions
            instructions: System prompt for every session
        """
        self._settings = settings
        self._connector = connector
        self._instructions = instructions
        self._server: Optional[Server] = None

        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> str:
        """Accepted upgrade path."""
        return self._settings.server.ws_path

    @property
    def port(self) -> Optional[int]:
        """Bound port once started (useful when configured with port 0)."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    def create_session(self, websocket: ServerConnection) -> SessionBridge:
        """Build the bridge for one accepted connection."""
        audio = self._settings.audio
        return SessionBridge(
            websocket,
            self._connector,
            instructions=self._instructions,
            transcoder=FrameTranscoder(audio.telephony_sr, audio.model_sr),
            commit_every=audio.commit_every_chunks,
            response_modalities=self._settings.ai.response_modalities,
            pending_output_max_frames=audio.pending_output_max_frames,
            start_timeout=self._settings.server.start_timeout,
        )

    def _process_request(self, connection: ServerConnection, request: Request) -> Optional[Response]:
        path = urlsplit(request.path).path
        if path != self.path:
            self._logger.warning("Rejecting upgrade on unknown path", path=path)
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")
        return None

    async def _handle(self, websocket: ServerConnection) -> None:
        session = self.create_session(websocket)
        self._logger.info(
            "Telephony connected",
            remote=str(websocket.remote_address),
            session_id=session.session_id
        )
        try:
            await session.run()
        except Exception as e:
            self._logger.error(
                "Session failed",
                session_id=session.session_id,
                error=str(e),
                exc_info=True
            )
        finally:
            self._logger.info("Telephony disconnected", session_id=session.session_id)

    async def start(self) -> Server:
        """Bind and start accepting connections."""
        server_cfg = self._settings.server
        Codec.warm_up()

        self._server = await websockets.serve(
            self._handle,
            server_cfg.host,
            server_cfg.port,
            process_request=self._process_request,
            max_size=None
        )
        self._logger.info(
            "Listening for telephony streams",
            host=server_cfg.host,
            port=self.port,
            path=self.path
        )
        return self._server

    async def close(self) -> None:
        """Stop accepting and close open connections."""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._logger.info("Listener stopped")

    async def serve_forever(self, stop_event: asyncio.Event) -> None:
        """Run until ``stop_event`` is set."""
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.close()
