"""Audio resampler for sample rate conversion."""

import numpy as np


def resample_linear(samples: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Resample PCM16 samples using linear interpolation.

    One-shot and stateless: each call is resampled on its own, so the
    samples at chunk edges are approximate.

    Args:
        samples: PCM16 samples
        from_rate: Source sample rate in Hz
        to_rate: Target sample rate in Hz

    Returns:
        Resampled PCM16 samples, ``floor(len(samples) * to_rate / from_rate)`` long

    Examples:
        # Upsample from 8kHz to 16kHz (model input)
        pcm16_16k = resample_linear(pcm16_8k, 8000, 16000)
    """
    if from_rate == to_rate:
        return samples

    ratio = to_rate / from_rate
    out_len = len(samples) * to_rate // from_rate
    if out_len == 0 or len(samples) == 0:
        return np.zeros(0, dtype=np.int16)

    source = np.asarray(samples, dtype=np.float64)

    # Fractional source position for each output sample
    src = np.arange(out_len, dtype=np.float64) / ratio
    i0 = np.floor(src).astype(np.intp)
    i1 = np.minimum(i0 + 1, len(source) - 1)
    frac = src - i0

    interpolated = source[i0] * (1.0 - frac) + source[i1] * frac

    # Truncate toward zero, not round
    return np.trunc(interpolated).astype(np.int16)


class Resampler:
    """Fixed-ratio linear resampler over PCM16 byte buffers."""

    def __init__(self, source_rate: int, target_rate: int) -> None:
        """Initialize resampler.

        Args:
            source_rate: Source sample rate in Hz
            target_rate: Target sample rate in Hz

        Raises:
            ValueError: If rates are invalid
        """
        if source_rate <= 0:
            raise ValueError(f"Source rate must be positive, got {source_rate}")
        if target_rate <= 0:
            raise ValueError(f"Target rate must be positive, got {target_rate}")

        self._source_rate = source_rate
        self._target_rate = target_rate
        self._ratio = target_rate / source_rate

    @property
    def source_rate(self) -> int:
        """Source sample rate."""
        return self._source_rate

    @property
    def target_rate(self) -> int:
        """Target sample rate."""
        return self._target_rate

    @property
    def ratio(self) -> float:
        """Resampling ratio (target/source)."""
        return self._ratio

    def resample_samples(self, samples: np.ndarray) -> np.ndarray:
        """Resample a PCM16 sample array."""
        return resample_linear(samples, self._source_rate, self._target_rate)

    def resample(self, audio_data: bytes) -> bytes:
        """Resample audio data.

        Args:
            audio_data: PCM16 little-endian audio data at source rate

        Returns:
            Resampled PCM16 little-endian audio data at target rate

        Raises:
            ValueError: If the buffer has an odd number of bytes
        """
        if len(audio_data) % 2:
            raise ValueError(f"PCM16 buffer must have an even length, got {len(audio_data)}")
        if self._source_rate == self._target_rate:
            return audio_data

        samples = np.frombuffer(audio_data, dtype="<i2")
        return self.resample_samples(samples).astype("<i2").tobytes()

    def calculate_output_size(self, input_size: int) -> int:
        """Calculate output size after resampling.

        Args:
            input_size: Input size in bytes

        Returns:
            Output size in bytes
        """
        input_samples = input_size // 2
        return (input_samples * self._target_rate // self._source_rate) * 2
