"""Whole-frame transcoding between telephony and model audio.

Audio Flow:
- Telephony -> model: base64 μ-law @ 8kHz -> PCM16 @ 8kHz -> PCM16 @ 16kHz -> base64
- Model -> telephony: base64 PCM16 @ 16kHz -> PCM16 @ 8kHz -> μ-law @ 8kHz -> base64

Malformed base64 raises ``binascii.Error`` and odd-length PCM raises
``ValueError``; callers decide what to do with a bad frame.
"""

import base64

from callbridge.core.constants import AudioConstants
from callbridge.core.resampler import Resampler
from callbridge.utils.codec import convert_g711_to_pcm16, convert_pcm16_to_g711


class FrameTranscoder:
    """Converts media payloads between the telephony and model formats."""

    def __init__(
        self,
        telephony_rate: int = AudioConstants.TELEPHONY_SAMPLE_RATE,
        model_rate: int = AudioConstants.MODEL_SAMPLE_RATE
    ) -> None:
        """Initialize transcoder.

        Args:
            telephony_rate: Telephony (μ-law) sample rate in Hz
            model_rate: Model (PCM16) sample rate in Hz
        """
        self._uplink = Resampler(telephony_rate, model_rate)
        self._downlink = Resampler(model_rate, telephony_rate)

    @property
    def telephony_rate(self) -> int:
        """Telephony sample rate."""
        return self._uplink.source_rate

    @property
    def model_rate(self) -> int:
        """Model sample rate."""
        return self._uplink.target_rate

    def telephony_to_model(self, payload_b64: str) -> str:
        """Convert a telephony media payload to a model audio append payload.

        Args:
            payload_b64: Base64 μ-law audio at the telephony rate

        Returns:
            Base64 PCM16 little-endian audio at the model rate
        """
        ulaw = base64.b64decode(payload_b64, validate=True)
        pcm16 = convert_g711_to_pcm16(ulaw, "ulaw")
        pcm16_model = self._uplink.resample(pcm16)
        return base64.b64encode(pcm16_model).decode("ascii")

    def model_to_telephony(self, audio_b64: str) -> str:
        """Convert a model audio delta to a telephony media payload.

        Args:
            audio_b64: Base64 PCM16 little-endian audio at the model rate

        Returns:
            Base64 μ-law audio at the telephony rate
        """
        pcm16_model = base64.b64decode(audio_b64, validate=True)
        pcm16 = self._downlink.resample(pcm16_model)
        ulaw = convert_pcm16_to_g711(pcm16, "ulaw")
        return base64.b64encode(ulaw).decode("ascii")

