"""Audio codec for μ-law to PCM16 conversion."""

from typing import Literal

import numpy as np


class Codec:
    """G.711 μ-law codec with vectorized operations.

    The per-sample functions define the companding table; the whole-buffer
    functions use numpy lookup tables built from them.
    """

    # μ-law constants
    ULAW_MAX = 0x7FFF  # Maximum biased magnitude
    ULAW_BIAS = 0x84  # Bias for linear code

    _ulaw_table: np.ndarray | None = None
    _pcm_to_ulaw_table: np.ndarray | None = None

    @staticmethod
    def decode_sample(ulaw: int) -> int:
        """Decode a single μ-law byte to a PCM16 sample.

        Args:
            ulaw: μ-law encoded byte (0-255)

        Returns:
            Linear PCM16 sample
        """
        # Complement to obtain normal u-law value
        ulaw = ~ulaw & 0xFF

        sign = ulaw & 0x80
        exponent = (ulaw >> 4) & 0x07
        mantissa = ulaw & 0x0F

        sample = ((mantissa << 3) + Codec.ULAW_BIAS) << exponent
        sample -= Codec.ULAW_BIAS

        return -sample if sign else sample

    @staticmethod
    def encode_sample(sample: int) -> int:
        """Encode a single PCM16 sample to μ-law.

        Args:
            sample: Linear PCM16 sample (-32768..32767)

        Returns:
            μ-law encoded byte
        """
        if sample < 0:
            sign = 0x80
            sample = -sample
        else:
            sign = 0

        # Bias first, then clip so the segment search stays within 15 bits
        sample += Codec.ULAW_BIAS
        if sample > Codec.ULAW_MAX:
            sample = Codec.ULAW_MAX

        exponent = 7
        mask = 0x4000
        while (sample & mask) == 0 and exponent > 0:
            exponent -= 1
            mask >>= 1

        mantissa = (sample >> (exponent + 3)) & 0x0F

        return ~(sign | (exponent << 4) | mantissa) & 0xFF

    @staticmethod
    def ulaw_to_pcm16(ulaw_data: bytes) -> bytes:
        """Convert μ-law to 16-bit PCM.

        Args:
            ulaw_data: μ-law encoded audio data

        Returns:
            PCM16 little-endian audio data
        """
        ulaw_array = np.frombuffer(ulaw_data, dtype=np.uint8)
        pcm_array = Codec._decode_table()[ulaw_array]
        return pcm_array.astype("<i2").tobytes()

    @staticmethod
    def pcm16_to_ulaw(pcm_data: bytes) -> bytes:
        """Convert 16-bit PCM to μ-law.

        Args:
            pcm_data: PCM16 little-endian audio data

        Returns:
            μ-law encoded audio data

        Raises:
            ValueError: If the buffer has an odd number of bytes
        """
        if len(pcm_data) % 2:
            raise ValueError(f"PCM16 buffer must have an even length, got {len(pcm_data)}")

        pcm_array = np.frombuffer(pcm_data, dtype="<i2").astype(np.int32)
        ulaw_array = Codec._encode_table()[pcm_array + 32768]
        return ulaw_array.tobytes()

    @staticmethod
    def warm_up() -> None:
        """Build both lookup tables ahead of the first call.

        The encode table has 65536 entries built one sample at a time.
        """
        Codec._decode_table()
        Codec._encode_table()

    @staticmethod
    def _decode_table() -> np.ndarray:
        """μ-law to PCM16 lookup table (256 entries)."""
        if Codec._ulaw_table is None:
            Codec._ulaw_table = np.array(
                [Codec.decode_sample(i) for i in range(256)], dtype=np.int16
            )
        return Codec._ulaw_table

    @staticmethod
    def _encode_table() -> np.ndarray:
        """PCM16 to μ-law lookup table, indexed by sample + 32768."""
        if Codec._pcm_to_ulaw_table is None:
            Codec._pcm_to_ulaw_table = np.array(
                [Codec.encode_sample(pcm) for pcm in range(-32768, 32768)], dtype=np.uint8
            )
        return Codec._pcm_to_ulaw_table


def convert_g711_to_pcm16(data: bytes, encoding: Literal["ulaw"]) -> bytes:
    """Convert G.711 encoded audio to PCM16.

    Args:
        data: G.711 encoded audio data
        encoding: Encoding type (only "ulaw" is carried by the telephony stream)

    Returns:
        PCM16 encoded audio data

    Raises:
        ValueError: If encoding type is not supported
    """
    if encoding == "ulaw":
        return Codec.ulaw_to_pcm16(data)
    raise ValueError(f"Unsupported encoding: {encoding}")


def convert_pcm16_to_g711(data: bytes, encoding: Literal["ulaw"]) -> bytes:
    """Convert PCM16 audio to G.711 encoding.

    Args:
        data: PCM16 encoded audio data
        encoding: Target encoding type (only "ulaw")

    Returns:
        G.711 encoded audio data

    Raises:
        ValueError: If encoding type is not supported
    """
    if encoding == "ulaw":
        return Codec.pcm16_to_ulaw(data)
    raise ValueError(f"Unsupported encoding: {encoding}")
