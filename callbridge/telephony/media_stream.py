"""Twilio Media Streams message parsing and building.

Inbound messages are JSON text frames::

    {"event": "start", "start": {"streamSid": "MZ...", ...}}
    {"event": "media", "media": {"payload": "<base64 μ-law>"}}
    {"event": "stop"}

Outbound audio is sent back as::

    {"event": "media", "streamSid": "MZ...", "media": {"payload": "<base64 μ-law>"}}
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from callbridge.errors import MalformedMessageError
from callbridge.utils.json_frames import decode_json_object


class TelephonyEventType(Enum):
    """Telephony stream event kinds."""

    CONNECTED = "connected"
    START = "start"
    MEDIA = "media"
    STOP = "stop"
    MARK = "mark"


@dataclass
class TelephonyEvent:
    """Parsed telephony stream event."""

    type: TelephonyEventType
    stream_sid: Optional[str] = None
    payload: Optional[str] = None
    track: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None


def parse_telephony_message(raw: str | bytes) -> TelephonyEvent:
    """Parse one telephony WebSocket message.

    Args:
        raw: Text (or UTF-8 bytes) frame received from the telephony socket

    Returns:
        Parsed event

    Raises:
        MalformedMessageError: If the frame is not JSON, the event kind is
            unknown, or a required field is missing
    """
    message = decode_json_object(raw)

    try:
        event_type = TelephonyEventType(message.get("event"))
    except ValueError as e:
        raise MalformedMessageError(f"Unknown telephony event: {message.get('event')!r}") from e

    if event_type is TelephonyEventType.START:
        start = message.get("start")
        stream_sid = start.get("streamSid") if isinstance(start, dict) else None
        # Twilio also repeats streamSid at the top level
        stream_sid = stream_sid or message.get("streamSid")
        if not isinstance(stream_sid, str) or not stream_sid:
            raise MalformedMessageError("start event without streamSid")
        return TelephonyEvent(type=event_type, stream_sid=stream_sid, raw=message)

    if event_type is TelephonyEventType.MEDIA:
        media = message.get("media")
        payload = media.get("payload") if isinstance(media, dict) else None
        if not isinstance(payload, str):
            raise MalformedMessageError("media event without payload")
        return TelephonyEvent(
            type=event_type,
            stream_sid=message.get("streamSid"),
            payload=payload,
            track=media.get("track"),
            raw=message,
        )

    return TelephonyEvent(type=event_type, stream_sid=message.get("streamSid"), raw=message)


def build_media_message(stream_sid: str, payload_b64: str) -> str:
    """Build an outbound media frame for the telephony socket.

    Args:
        stream_sid: Stream identifier from the start event
        payload_b64: Base64 μ-law audio

    Returns:
        JSON text frame
    """
    return json.dumps({
        "event": "media",
        "streamSid": stream_sid,
        "media": {"payload": payload_b64},
    })
