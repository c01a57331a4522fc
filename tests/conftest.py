"""Shared test fixtures and configuration."""

import base64
from typing import Callable

import numpy as np
import pytest

from callbridge.bridge.session import SessionBridge
from callbridge.utils.codec import Codec
from tests.mock_sockets import FakeSocket, MockConnector


@pytest.fixture
def ulaw_frame_8k() -> bytes:
    """20ms μ-law frame at 8kHz (160 bytes) carrying a 400Hz tone."""
    t = np.arange(160) / 8000
    tone = (np.sin(2 * np.pi * 400 * t) * 8000).astype("<i2")
    return Codec.pcm16_to_ulaw(tone.tobytes())


@pytest.fixture
def ulaw_payload(ulaw_frame_8k: bytes) -> str:
    """Base64 telephony media payload."""
    return base64.b64encode(ulaw_frame_8k).decode("ascii")


@pytest.fixture
def pcm16_frame_16k() -> bytes:
    """20ms PCM16 frame at 16kHz (320 samples, 640 bytes)."""
    return (np.arange(320, dtype=np.int16) * 50).astype("<i2").tobytes()


@pytest.fixture
def model_audio_delta(pcm16_frame_16k: bytes) -> str:
    """Base64 model output audio."""
    return base64.b64encode(pcm16_frame_16k).decode("ascii")


@pytest.fixture
def telephony_socket() -> FakeSocket:
    """Fake inbound telephony WebSocket."""
    return FakeSocket("telephony")


@pytest.fixture
def model_socket() -> FakeSocket:
    """Fake realtime model WebSocket."""
    return FakeSocket("model")


@pytest.fixture
def connector(model_socket: FakeSocket) -> MockConnector:
    """Connector handing out the fake model socket."""
    return MockConnector(model_socket)


@pytest.fixture
def make_bridge(telephony_socket: FakeSocket, connector: MockConnector) -> Callable[..., SessionBridge]:
    """Factory for a bridge wired to the fake sockets."""

    def _make(**kwargs) -> SessionBridge:
        kwargs.setdefault("instructions", "Be brief.")
        return SessionBridge(telephony_socket, connector, **kwargs)

    return _make
