"""Session bridge between a telephony media stream and a realtime model.

One SessionBridge per accepted telephony connection. It opens the model
connection, configures the session, then runs two pumps in a TaskGroup:

- Uplink: telephony media -> μ-law decode -> 16kHz PCM16 -> input_audio_buffer.append
- Downlink: response audio delta -> 8kHz μ-law -> telephony media

When either socket closes or errors, both are closed together.
"""

import asyncio
import uuid
from enum import Enum, auto
from typing import Coroutine, Iterable, Optional

import structlog
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode

from callbridge.ai.connector_base import MessageSocket, UpstreamConnector
from callbridge.ai.realtime_events import (
    AUDIO_DELTA_TYPES,
    RESPONSE_FINISHED_TYPES,
    RealtimeEventType,
    input_audio_append,
    input_audio_commit,
    parse_realtime_message,
    response_create,
    session_update,
)
from callbridge.bridge.turn_policy import TurnPolicy
from callbridge.core.agent_config import DEFAULT_INSTRUCTIONS
from callbridge.core.constants import AudioConstants
from callbridge.core.ring_buffer import RingBuffer
from callbridge.core.transcoder import FrameTranscoder
from callbridge.errors import MalformedMessageError, UpstreamConnectError
from callbridge.telephony.media_stream import (
    TelephonyEvent,
    TelephonyEventType,
    build_media_message,
    parse_telephony_message,
)


class SessionState(Enum):
    """Session lifecycle states."""

    CONNECTING = auto()      # waiting for the model connection
    AWAITING_START = auto()  # model configured, no streamSid yet
    ACTIVE = auto()          # streaming both directions
    CLOSING = auto()
    CLOSED = auto()


class SessionBridge:
    """Bridges one telephony socket with one realtime model socket.

    All mutable state (streamSid, turn accumulator, pending output) belongs
    to this instance and is only touched from its own tasks.
    """

    def __init__(
        self,
        telephony: MessageSocket,
        connector: UpstreamConnector,
        *,
        instructions: str = DEFAULT_INSTRUCTIONS,
        transcoder: Optional[FrameTranscoder] = None,
        commit_every: int = AudioConstants.COMMIT_EVERY_CHUNKS,
        response_modalities: Iterable[str] = ("audio", "text"),
        pending_output_max_frames: int = AudioConstants.PENDING_OUTPUT_MAX_FRAMES,
        start_timeout: Optional[float] = None
    ) -> None:
        """Initialize session bridge.

        Args:
            telephony: Accepted telephony WebSocket
            connector: Factory for the model connection
            instructions: System prompt sent in session.update
            transcoder: Frame transcoder (defaults to 8kHz <-> 16kHz)
            commit_every: Media chunks per forced turn
            response_modalities: Modalities requested in response.create
            pending_output_max_frames: Outbound frames kept before streamSid is known
            start_timeout: Seconds to wait for the start event (None/0 disables)
        """
        self._telephony = telephony
        self._connector = connector
        self._model: Optional[MessageSocket] = None

        self._instructions = instructions
        self._transcoder = transcoder or FrameTranscoder()
        self._turns = TurnPolicy(commit_every)
        self._modalities = tuple(response_modalities)
        self._pending_output = RingBuffer(pending_output_max_frames)
        self._start_timeout = start_timeout or None

        self._state = SessionState.CONNECTING
        self._stream_sid: Optional[str] = None
        self._started = asyncio.Event()
        self._stop_received = False
        self._responses_pending = 0
        self._tasks: set[asyncio.Task[None]] = set()

        # Stats
        self._media_received = 0
        self._media_sent = 0
        self._dropped_messages = 0

        self.session_id = uuid.uuid4().hex[:12]
        self._logger = structlog.get_logger(__name__).bind(session_id=self.session_id)

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    @property
    def stream_sid(self) -> Optional[str]:
        """Telephony stream identifier, once the start event has arrived."""
        return self._stream_sid

    @property
    def turn_accumulator(self) -> int:
        """Media chunks received since the last commit."""
        return self._turns.pending

    @property
    def pending_output(self) -> int:
        """Outbound frames waiting for a streamSid."""
        return len(self._pending_output)

    def get_stats(self) -> dict:
        """Get session statistics."""
        return {
            "media_received": self._media_received,
            "media_sent": self._media_sent,
            "turns": self._turns.turns,
            "dropped_messages": self._dropped_messages,
            "dropped_output_frames": self._pending_output.dropped,
        }

    async def run(self) -> None:
        """Connect upstream and relay until either side closes."""
        self._logger.info("Session starting")

        try:
            self._model = await self._connector.connect()
        except UpstreamConnectError as e:
            self._logger.error("Upstream connect failed, closing telephony", error=str(e))
            self._state = SessionState.CLOSING
            await self._close_socket(self._telephony, "telephony", CloseCode.INTERNAL_ERROR)
            self._state = SessionState.CLOSED
            return

        try:
            # Configuration must precede any audio append
            await self._model.send(session_update(self._instructions))
        except ConnectionClosed as e:
            self._logger.warning("Model closed during setup", error=str(e))
            await self._teardown("model closed during setup", CloseCode.INTERNAL_ERROR)
            return

        self._logger.info("Session configured", instructions_length=len(self._instructions))
        self._state = SessionState.AWAITING_START

        try:
            async with asyncio.TaskGroup() as tg:
                self._spawn(tg, self._telephony_pump(), "telephony-pump")
                self._spawn(tg, self._model_pump(), "model-pump")
                if self._start_timeout:
                    self._spawn(tg, self._start_watchdog(), "start-watchdog")

        except* Exception as eg:
            self._logger.error(
                "Session TaskGroup exceptions",
                count=len(eg.exceptions)
            )
            for exc in eg.exceptions:
                self._logger.error(
                    f"Exception: {type(exc).__name__}: {exc}",
                    exc_info=exc
                )
            await self._teardown("session failed", CloseCode.INTERNAL_ERROR)
        finally:
            await self._teardown("session ended")

    async def close(self) -> None:
        """Tear the session down from outside (e.g. server shutdown)."""
        await self._teardown("closed by server")

    def _spawn(self, tg: asyncio.TaskGroup, coro: Coroutine[None, None, None], name: str) -> None:
        task = tg.create_task(coro, name=f"{name}-{self.session_id}")
        self._tasks.add(task)

    @property
    def _closing(self) -> bool:
        return self._state in (SessionState.CLOSING, SessionState.CLOSED)

    # Uplink: telephony -> model

    async def _telephony_pump(self) -> None:
        reason = "telephony closed"
        code = CloseCode.NORMAL_CLOSURE
        try:
            async for raw in self._telephony:
                if self._closing:
                    break
                await self._on_telephony_message(raw)
        except ConnectionClosed as e:
            reason = "telephony pump connection error"
            code = CloseCode.INTERNAL_ERROR
            self._logger.warning("Connection closed in telephony pump", error=str(e))
        finally:
            await self._teardown(reason, code)

    async def _on_telephony_message(self, raw: str | bytes) -> None:
        try:
            event = parse_telephony_message(raw)
        except MalformedMessageError as e:
            self._dropped_messages += 1
            self._logger.warning("Dropping malformed telephony message", error=str(e))
            return

        if event.type is TelephonyEventType.START:
            await self._on_start(event)
        elif event.type is TelephonyEventType.MEDIA:
            await self._on_media(event)
        elif event.type is TelephonyEventType.STOP:
            await self._on_stop()
        else:
            self._logger.debug("Ignoring telephony event", event=event.type.value)

    async def _on_start(self, event: TelephonyEvent) -> None:
        if self._stream_sid is not None:
            self._logger.warning("Repeated start event", stream_sid=event.stream_sid)

        # Frames produced while flushing are queued behind the backlog; the
        # streamSid is published only once the queue is empty.
        flushed = 0
        for payload in self._pending_output.drain():
            await self._telephony.send(build_media_message(event.stream_sid, payload))
            flushed += 1
        self._stream_sid = event.stream_sid
        self._media_sent += flushed

        self._logger = self._logger.bind(stream_sid=self._stream_sid)
        self._logger.info("Telephony stream started", flushed_frames=flushed)

        if self._state is SessionState.AWAITING_START:
            self._state = SessionState.ACTIVE
        self._started.set()

    async def _on_media(self, event: TelephonyEvent) -> None:
        if event.track and event.track != "inbound":
            return

        try:
            audio = self._transcoder.telephony_to_model(event.payload)
        except ValueError as e:
            self._dropped_messages += 1
            self._logger.warning("Dropping undecodable media payload", error=str(e))
            return

        await self._model.send(input_audio_append(audio))

        self._media_received += 1
        if self._media_received % AudioConstants.LOG_INTERVAL_FRAMES == 0:
            self._logger.debug(
                "Uplink stats",
                frames=self._media_received,
                direction="telephony → model"
            )

        if self._turns.on_media():
            await self._request_response()

    async def _on_stop(self) -> None:
        self._logger.info("Telephony stream stopped", pending_chunks=self._turns.pending)
        self._stop_received = True
        self._turns.on_stop()
        await self._request_response()

    async def _request_response(self) -> None:
        await self._model.send(input_audio_commit())
        await self._model.send(response_create(self._modalities))
        self._responses_pending += 1
        self._logger.debug(
            "Turn committed",
            turns=self._turns.turns,
            responses_pending=self._responses_pending
        )

    # Downlink: model -> telephony

    async def _model_pump(self) -> None:
        reason = "model closed"
        code = CloseCode.NORMAL_CLOSURE
        try:
            async for raw in self._model:
                if self._closing:
                    break
                await self._on_model_message(raw)
        except ConnectionClosed as e:
            reason = "model pump connection error"
            code = CloseCode.INTERNAL_ERROR
            self._logger.warning("Connection closed in model pump", error=str(e))
        finally:
            await self._teardown(reason, code)

    async def _on_model_message(self, raw: str | bytes) -> None:
        try:
            event = parse_realtime_message(raw)
        except MalformedMessageError as e:
            self._dropped_messages += 1
            self._logger.warning("Dropping malformed model message", error=str(e))
            return

        if event.type in AUDIO_DELTA_TYPES:
            await self._on_audio_delta(event.audio)
        elif event.type in RESPONSE_FINISHED_TYPES:
            self._turns.reset()
            self._responses_pending = max(self._responses_pending - 1, 0)
            # Only the last outstanding response ends the call after stop
            if self._stop_received and self._responses_pending == 0:
                await self._teardown("response finished after stop")
        elif event.type is RealtimeEventType.ERROR:
            self._logger.error("Realtime model error", error=event.error)
        else:
            self._logger.debug("Realtime event", type=event.name)

    async def _on_audio_delta(self, audio_b64: str) -> None:
        try:
            payload = self._transcoder.model_to_telephony(audio_b64)
        except ValueError as e:
            self._dropped_messages += 1
            self._logger.warning("Dropping undecodable model audio", error=str(e))
            return

        if self._stream_sid is None:
            if not self._pending_output.push(payload):
                self._logger.warning(
                    "Pending output full, dropped oldest frame",
                    capacity=self._pending_output.capacity
                )
            return

        await self._telephony.send(build_media_message(self._stream_sid, payload))
        self._media_sent += 1

    async def _start_watchdog(self) -> None:
        try:
            async with asyncio.timeout(self._start_timeout):
                await self._started.wait()
        except TimeoutError:
            self._logger.warning("No start event received", timeout=self._start_timeout)
            await self._teardown("start timeout")

    # Teardown

    async def _teardown(self, reason: str, code: int = CloseCode.NORMAL_CLOSURE) -> None:
        """Close both sockets exactly once.

        Args:
            reason: Why the session is ending (logged)
            code: WebSocket close code sent on both sockets
        """
        if self._closing:
            return

        previous = self._state
        self._state = SessionState.CLOSING
        self._logger.info("Session closing", reason=reason, code=int(code), previous_state=previous.name)

        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()

        await self._close_socket(self._telephony, "telephony", code)
        if self._model is not None:
            await self._close_socket(self._model, "model", code)

        discarded = self._pending_output.clear()
        self._state = SessionState.CLOSED
        self._logger.info("Session closed", discarded_output_frames=discarded, **self.get_stats())

    async def _close_socket(self, socket: MessageSocket, side: str, code: int) -> None:
        try:
            await socket.close(code=code)
        except Exception as e:
            # Secondary failure while the peer is already gone
            self._logger.debug("Error closing socket", side=side, error=str(e))
