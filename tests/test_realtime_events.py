"""Tests for realtime model events."""

import json

import pytest

from callbridge.ai.realtime_events import (
    RealtimeEventType,
    input_audio_append,
    input_audio_commit,
    parse_realtime_message,
    response_create,
    session_update,
)
from callbridge.errors import MalformedMessageError


class TestParseRealtimeMessage:
    """Test server event parsing."""

    @pytest.mark.parametrize("name", ["response.audio.delta", "response.output_audio.delta"])
    def test_audio_delta(self, name: str) -> None:
        """Both output audio event names are recognised."""
        event = parse_realtime_message(json.dumps({"type": name, "response_id": "r1", "delta": "AAAA"}))
        assert event.type.value == name
        assert event.audio == "AAAA"

    def test_audio_field_fallback(self) -> None:
        """The legacy audio field is accepted."""
        event = parse_realtime_message(json.dumps({"type": "response.audio.delta", "audio": "BBBB"}))
        assert event.audio == "BBBB"

    def test_delta_without_audio(self) -> None:
        """An audio delta must carry audio."""
        with pytest.raises(MalformedMessageError):
            parse_realtime_message('{"type": "response.audio.delta"}')

    def test_response_finished(self) -> None:
        """response.completed and response.done are distinct types."""
        assert parse_realtime_message('{"type": "response.completed"}').type is RealtimeEventType.RESPONSE_COMPLETED
        assert parse_realtime_message('{"type": "response.done"}').type is RealtimeEventType.RESPONSE_DONE

    def test_error(self) -> None:
        """Error payloads are kept."""
        event = parse_realtime_message(json.dumps({
            "type": "error",
            "error": {"type": "invalid_request_error", "message": "buffer too small"},
        }))
        assert event.type is RealtimeEventType.ERROR
        assert event.error["message"] == "buffer too small"

    def test_unknown_type(self) -> None:
        """Unhandled types map to OTHER and keep their name."""
        event = parse_realtime_message('{"type": "session.created", "session": {}}')
        assert event.type is RealtimeEventType.OTHER
        assert event.name == "session.created"

    @pytest.mark.parametrize("raw", ["{", '"text"', '{"type": 5}', "{}"])
    def test_malformed(self, raw: str) -> None:
        """Frames without a string type are rejected."""
        with pytest.raises(MalformedMessageError):
            parse_realtime_message(raw)


class TestClientEvents:
    """Test client event builders."""

    def test_session_update(self) -> None:
        """Instructions go under session."""
        assert json.loads(session_update("Hi")) == {
            "type": "session.update",
            "session": {"instructions": "Hi"},
        }

    def test_session_update_keeps_unicode(self) -> None:
        """Non-ASCII prompts survive encoding."""
        assert json.loads(session_update("Говори кратко"))["session"]["instructions"] == "Говори кратко"

    def test_input_audio_append(self) -> None:
        """Audio goes in the audio field."""
        assert json.loads(input_audio_append("AAAA")) == {
            "type": "input_audio_buffer.append",
            "audio": "AAAA",
        }

    def test_commit(self) -> None:
        """Commit has no payload."""
        assert json.loads(input_audio_commit()) == {"type": "input_audio_buffer.commit"}

    def test_response_create(self) -> None:
        """Audio and text modalities by default."""
        assert json.loads(response_create()) == {
            "type": "response.create",
            "response": {"modalities": ["audio", "text"]},
        }
        assert json.loads(response_create(("audio",)))["response"]["modalities"] == ["audio"]
