"""Unit tests for the audio framer and WAV parsing."""

import struct

import numpy as np
import pytest

from conversation_session.audio import (
    NO_DATA_MESSAGE,
    NOT_WAV_MESSAGE,
    PCM_CONTENT_TYPE,
    WRONG_FORMAT_MESSAGE,
    AudioFramer,
    parse_wav,
)
from conversation_session.exceptions import InvalidAudioError, LocalRequestError


def _pcm(*values: int) -> bytes:
    return struct.pack(f"<{len(values)}h", *values)


class TestAudioFramer:
    """Test progressive PCM accumulation."""

    def test_starts_empty(self) -> None:
        """A new framer holds nothing and is not recording."""
        framer = AudioFramer()
        assert framer.drain() == b""
        assert not framer.is_recording
        assert len(framer) == 0

    def test_converts_float_samples_to_int16(self) -> None:
        """Samples are scaled by 32767 and written little-endian."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples(np.array([0.0, 1.0, -1.0], dtype=np.float32))
        assert framer.drain() == _pcm(0, 32767, -32767)

    def test_clips_out_of_range_samples(self) -> None:
        """Values beyond [-1, 1] are clipped rather than wrapped."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples([2.0, -3.5])
        assert framer.drain() == _pcm(32767, -32767)

    def test_preserves_chunk_order_with_empty_chunks(self) -> None:
        """drain() yields chunks in arrival order, skipping empty ones."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples([1.0])
        framer.add_samples([])
        framer.add_samples(np.zeros(0, dtype=np.float32))
        framer.add_samples([0.0, -1.0])
        assert framer.drain() == _pcm(32767, 0, -32767)
        assert len(framer) == 3

    def test_accepts_two_dimensional_blocks(self) -> None:
        """Blocks shaped (frames, 1), as sounddevice delivers them, are flattened."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples(np.array([[1.0], [0.0]], dtype=np.float32))
        assert framer.drain() == _pcm(32767, 0)

    def test_drain_does_not_clear(self) -> None:
        """Reading the buffer twice returns the same bytes."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples([1.0])
        assert framer.drain() == framer.drain()

    def test_flush_is_idempotent(self) -> None:
        """Flushing an empty buffer, or flushing twice, is harmless."""
        framer = AudioFramer()
        framer.flush()
        assert framer.drain() == b""

        framer.start()
        framer.add_samples([1.0])
        framer.flush()
        framer.flush()
        assert framer.drain() == b""
        assert not framer.is_recording

    def test_start_resets_previous_capture(self) -> None:
        """Starting again discards samples from the previous capture."""
        framer = AudioFramer()
        framer.start()
        framer.add_samples([1.0])
        framer.start()
        assert framer.drain() == b""
        assert framer.is_recording

    def test_content_type(self) -> None:
        assert PCM_CONTENT_TYPE == "audio/l16; rate=16000"


class TestParseWav:
    """Test WAV container validation and data chunk lookup."""

    def test_returns_data_payload(self, make_wav) -> None:
        """A plain 44-byte header WAV yields its PCM payload."""
        pcm = _pcm(1, 2, 3, 4)
        assert parse_wav(make_wav(pcm)) == pcm

    @pytest.mark.parametrize("extra_count", [1, 2, 5])
    def test_skips_intervening_chunks(self, make_wav, extra_count: int) -> None:
        """Chunks between fmt and data are skipped by their declared size."""
        pcm = _pcm(7, -7, 9)
        extras = [(b"LIST", b"x" * (10 + i * 3)) for i in range(extra_count)]
        assert parse_wav(make_wav(pcm, extra_chunks=extras)) == pcm

    def test_accepts_memoryview_and_bytearray(self, make_wav) -> None:
        pcm = _pcm(5, 6)
        wav = make_wav(pcm)
        assert parse_wav(memoryview(wav)) == pcm
        assert parse_wav(bytearray(wav)) == pcm

    def test_rejects_missing_riff_magic(self) -> None:
        """Non-RIFF data fails on the magic check alone."""
        with pytest.raises(InvalidAudioError, match=NOT_WAV_MESSAGE):
            parse_wav(b"RIFX")

    def test_rejects_short_non_wav(self) -> None:
        with pytest.raises(InvalidAudioError, match=NOT_WAV_MESSAGE):
            parse_wav(b"")

    def test_rejects_truncated_header(self) -> None:
        """RIFF magic without room for the format fields is not a WAV file."""
        with pytest.raises(InvalidAudioError, match=NOT_WAV_MESSAGE):
            parse_wav(b"RIFF\x00\x00\x00\x00WAVE")

    @pytest.mark.parametrize(
        "kwargs",
        [{"channels": 2}, {"rate": 44100}, {"bits": 8}],
    )
    def test_rejects_wrong_format(self, make_wav, kwargs) -> None:
        """Anything but mono 16-bit at 16 kHz is rejected before the scan."""
        wav = make_wav(b"", include_data=False, **kwargs)
        with pytest.raises(InvalidAudioError, match=WRONG_FORMAT_MESSAGE):
            parse_wav(wav)

    def test_rejects_missing_data_chunk(self, make_wav) -> None:
        wav = make_wav(b"", extra_chunks=[(b"LIST", b"meta")], include_data=False)
        with pytest.raises(InvalidAudioError, match=NO_DATA_MESSAGE):
            parse_wav(wav)

    def test_errors_are_local(self) -> None:
        """WAV errors are local request errors with code 500."""
        with pytest.raises(LocalRequestError) as info:
            parse_wav(b"nope")
        assert info.value.code == 500
