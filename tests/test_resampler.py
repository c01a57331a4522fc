"""Tests for the linear resampler."""

import numpy as np
import pytest

from callbridge.core.resampler import Resampler, resample_linear


class TestResampleLinear:
    """Test resample_linear on sample arrays."""

    def test_same_rate_is_identity(self) -> None:
        """Equal rates return the input itself."""
        samples = np.array([1, -2, 3], dtype=np.int16)
        assert resample_linear(samples, 16000, 16000) is samples

    @pytest.mark.parametrize(
        ("length", "from_rate", "to_rate"),
        [
            (160, 8000, 16000),
            (320, 16000, 8000),
            (161, 8000, 16000),
            (321, 16000, 8000),
            (7, 16000, 24000),
            (100, 44100, 16000),
            (1, 16000, 8000),
            (0, 8000, 16000),
        ],
    )
    def test_length_law(self, length: int, from_rate: int, to_rate: int) -> None:
        """Output length is floor(len * to / from)."""
        samples = np.ones(length, dtype=np.int16)
        out = resample_linear(samples, from_rate, to_rate)
        assert len(out) == (length * to_rate) // from_rate
        assert out.dtype == np.int16

    def test_upsample_interpolates_and_clamps_tail(self) -> None:
        """Midpoints are interpolated; the tail repeats the last sample."""
        out = resample_linear(np.array([0, 100], dtype=np.int16), 8000, 16000)
        assert out.tolist() == [0, 50, 100, 100]

    def test_downsample_picks_source_positions(self) -> None:
        """2:1 downsampling lands on every other input sample."""
        out = resample_linear(np.array([10, 20, 30, 40], dtype=np.int16), 16000, 8000)
        assert out.tolist() == [10, 30]

    def test_truncates_toward_zero(self) -> None:
        """Fractional results are truncated, not rounded or floored."""
        assert resample_linear(np.array([0, 3], dtype=np.int16), 8000, 16000).tolist()[1] == 1
        assert resample_linear(np.array([0, -3], dtype=np.int16), 8000, 16000).tolist()[1] == -1

    def test_single_sample_upsample(self) -> None:
        """A single sample never reads past the end of the buffer."""
        out = resample_linear(np.array([1000], dtype=np.int16), 8000, 48000)
        assert out.tolist() == [1000] * 6

    def test_single_sample_downsample(self) -> None:
        """A single sample downsampled 2:1 yields nothing."""
        out = resample_linear(np.array([1000], dtype=np.int16), 16000, 8000)
        assert len(out) == 0

    def test_extremes_stay_in_range(self) -> None:
        """Interpolating between full-scale values does not overflow."""
        samples = np.array([32767, -32768, 32767], dtype=np.int16)
        out = resample_linear(samples, 8000, 16000)
        assert out.tolist() == [32767, 0, -32768, 0, 32767, 32767]


class TestResampler:
    """Test the byte-oriented Resampler."""

    def test_8k_to_16k_upsample(self) -> None:
        """20ms at 8kHz (320 bytes) becomes 20ms at 16kHz (640 bytes)."""
        resampler = Resampler(source_rate=8000, target_rate=16000)
        output = resampler.resample(np.zeros(160, dtype=np.int16).tobytes())
        assert len(output) == 640

    def test_16k_to_8k_downsample(self) -> None:
        """20ms at 16kHz (640 bytes) becomes 20ms at 8kHz (320 bytes)."""
        resampler = Resampler(source_rate=16000, target_rate=8000)
        output = resampler.resample(np.zeros(320, dtype=np.int16).tobytes())
        assert len(output) == 320

    def test_same_rate(self) -> None:
        """Test resampling with same source and target rate."""
        resampler = Resampler(source_rate=16000, target_rate=16000)
        data = np.arange(320, dtype="<i2").tobytes()
        assert resampler.resample(data) == data

    def test_empty_input(self) -> None:
        """Test resampling with empty input."""
        resampler = Resampler(source_rate=8000, target_rate=16000)
        assert resampler.resample(b'') == b''

    def test_odd_length_rejected(self) -> None:
        """PCM16 input must contain whole samples."""
        resampler = Resampler(source_rate=16000, target_rate=8000)
        with pytest.raises(ValueError, match="even length"):
            resampler.resample(b'\x00' * 641)

    def test_calculate_output_size(self) -> None:
        """Test output size calculation."""
        assert Resampler(8000, 16000).calculate_output_size(320) == 640
        assert Resampler(16000, 8000).calculate_output_size(640) == 320
        assert Resampler(16000, 8000).calculate_output_size(2) == 0

    def test_properties(self) -> None:
        """Rates and ratio are exposed."""
        resampler = Resampler(8000, 16000)
        assert resampler.source_rate == 8000
        assert resampler.target_rate == 16000
        assert resampler.ratio == 2.0

    def test_invalid_parameters(self) -> None:
        """Test invalid parameter handling."""
        with pytest.raises(ValueError):
            Resampler(source_rate=0, target_rate=16000)

        with pytest.raises(ValueError):
            Resampler(source_rate=8000, target_rate=-1)

    def test_signal_preservation(self) -> None:
        """A 1kHz tone keeps its amplitude after upsampling."""
        resampler = Resampler(source_rate=8000, target_rate=16000)

        t = np.arange(160) / 8000
        signal = (np.sin(2 * np.pi * 1000 * t) * 16000).astype(np.int16)

        output_signal = np.frombuffer(resampler.resample(signal.tobytes()), dtype=np.int16)

        assert len(output_signal) == 320
        assert np.max(np.abs(output_signal)) > 10000
        # Even output samples sit exactly on input samples
        assert output_signal[::2].tolist() == signal.tolist()
