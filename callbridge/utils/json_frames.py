"""JSON text frame decoding shared by both WebSocket protocols."""

import json
from typing import Any, Dict

from callbridge.errors import MalformedMessageError


def decode_json_object(raw: str | bytes) -> Dict[str, Any]:
    """Decode a WebSocket frame that must hold a JSON object.

    Raises:
        MalformedMessageError: If the frame is not UTF-8 JSON or not an object
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessageError(f"Message is not UTF-8: {e}") from e
    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedMessageError(f"Invalid JSON: {e}") from e
    if not isinstance(message, dict):
        raise MalformedMessageError(f"Expected a JSON object, got {type(message).__name__}")
    return message
