"""Realtime model protocol events.

Client events (bridge -> model)::

    session.update             {"session": {"instructions": "..."}}
    input_audio_buffer.append  {"audio": "<base64 PCM16 16kHz>"}
    input_audio_buffer.commit
    response.create            {"response": {"modalities": ["audio", "text"]}}

Server events consumed by the bridge: output audio deltas, response
completion and errors. Everything else is ignored.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from callbridge.errors import MalformedMessageError
from callbridge.utils.json_frames import decode_json_object


class RealtimeEventType(Enum):
    """Realtime event types used by the bridge."""

    SESSION_UPDATE = "session.update"
    INPUT_AUDIO_APPEND = "input_audio_buffer.append"
    INPUT_AUDIO_COMMIT = "input_audio_buffer.commit"
    RESPONSE_CREATE = "response.create"

    AUDIO_DELTA = "response.audio.delta"
    OUTPUT_AUDIO_DELTA = "response.output_audio.delta"
    RESPONSE_COMPLETED = "response.completed"
    RESPONSE_DONE = "response.done"
    ERROR = "error"

    OTHER = "other"


AUDIO_DELTA_TYPES = frozenset({RealtimeEventType.AUDIO_DELTA, RealtimeEventType.OUTPUT_AUDIO_DELTA})
RESPONSE_FINISHED_TYPES = frozenset({RealtimeEventType.RESPONSE_COMPLETED, RealtimeEventType.RESPONSE_DONE})


@dataclass
class RealtimeEvent:
    """Parsed server event from the realtime model."""

    type: RealtimeEventType
    name: str
    audio: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    raw: Optional[Dict[str, Any]] = None


def parse_realtime_message(raw: str | bytes) -> RealtimeEvent:
    """Parse one realtime WebSocket message.

    Audio deltas carry base64 audio in ``delta``; the older ``audio`` field
    is accepted as well.

    Raises:
        MalformedMessageError: If the frame is not a JSON object with a
            ``type``, or an audio delta carries no audio
    """
    message = decode_json_object(raw)

    name = message.get("type")
    if not isinstance(name, str):
        raise MalformedMessageError("Realtime message without type")

    try:
        event_type = RealtimeEventType(name)
    except ValueError:
        event_type = RealtimeEventType.OTHER

    if event_type in AUDIO_DELTA_TYPES:
        audio = message.get("delta") or message.get("audio")
        if not isinstance(audio, str):
            raise MalformedMessageError(f"{name} without audio")
        return RealtimeEvent(type=event_type, name=name, audio=audio, raw=message)

    if event_type is RealtimeEventType.ERROR:
        error = message.get("error")
        return RealtimeEvent(
            type=event_type,
            name=name,
            error=error if isinstance(error, dict) else {"message": error},
            raw=message,
        )

    return RealtimeEvent(type=event_type, name=name, raw=message)


def session_update(instructions: str) -> str:
    """Build the one-time session configuration event."""
    return json.dumps({
        "type": RealtimeEventType.SESSION_UPDATE.value,
        "session": {"instructions": instructions},
    })


def input_audio_append(audio_b64: str) -> str:
    """Build an input audio append event."""
    return json.dumps({"type": RealtimeEventType.INPUT_AUDIO_APPEND.value, "audio": audio_b64})


def input_audio_commit() -> str:
    """Build an input audio commit event."""
    return json.dumps({"type": RealtimeEventType.INPUT_AUDIO_COMMIT.value})


def response_create(modalities: Iterable[str] = ("audio", "text")) -> str:
    """Build a response request event."""
    return json.dumps({
        "type": RealtimeEventType.RESPONSE_CREATE.value,
        "response": {"modalities": list(modalities)},
    })
