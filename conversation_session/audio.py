"""PCM accumulation for progressive capture and WAV parsing for one-shot uploads."""

from __future__ import annotations

import logging
import struct
from typing import List, Union

import numpy as np

from .exceptions import InvalidAudioError

logger = logging.getLogger(__name__)

ASR_SAMPLE_RATE = 16000
ASR_CHANNELS = 1
ASR_BITS_PER_SAMPLE = 16
PCM_CONTENT_TYPE = f"audio/l16; rate={ASR_SAMPLE_RATE}"

NOT_WAV_MESSAGE = "Data is not a WAV file"
WRONG_FORMAT_MESSAGE = "WAV data is not mono 16-bit data at 16k sample rate"
NO_DATA_MESSAGE = "Cannot find data segment in WAV file"

# RIFF id + size + WAVE tag
_RIFF_HEADER_SIZE = 12
# smallest buffer that still holds bits-per-sample at offset 34
_FORMAT_HEADER_SIZE = 36

BytesLike = Union[bytes, bytearray, memoryview]


class AudioFramer:
    """
    Accumulates float32 mono samples as 16-bit little-endian PCM.

    Usage:
        framer = AudioFramer()
        framer.start()
        framer.add_samples(block)  # e.g. a sounddevice callback buffer
        body = framer.drain()
        framer.flush()
    """

    def __init__(self) -> None:
        self._chunks: List[np.ndarray] = []
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start(self) -> None:
        """Reset the accumulator and begin a new capture."""
        self._chunks = []
        self._recording = True

    def add_samples(self, buffer) -> None:
        """
        Append one block of float32 samples in [-1.0, 1.0].

        Values outside that range are clipped. Empty blocks are accepted.
        """
        samples = np.asarray(buffer, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return

        pcm = np.clip(samples, -1.0, 1.0)
        self._chunks.append((pcm * 32767).astype("<i2"))

    def drain(self) -> bytes:
        """Return everything accumulated so far, in arrival order, without clearing it."""
        if not self._chunks:
            return b""
        return np.concatenate(self._chunks).tobytes()

    def flush(self) -> None:
        """Empty the accumulator. Safe to call when already empty."""
        self._chunks = []
        self._recording = False

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)


def parse_wav(data: BytesLike) -> bytes:
    """
    Validate a RIFF/WAVE buffer and return the payload of its ``data`` chunk.

    Only mono 16-bit PCM at 16 kHz is accepted. Chunks between ``fmt `` and
    ``data`` (``LIST``, ``fact``...) are skipped by walking the chunk sizes,
    so a header longer than 44 bytes is read correctly.

    Raises:
        InvalidAudioError: with a message naming which check failed.
    """

    if bytes(data[:4]) != b"RIFF":
        raise InvalidAudioError(NOT_WAV_MESSAGE)

    view = bytes(data)
    if len(view) < _FORMAT_HEADER_SIZE:
        raise InvalidAudioError(NOT_WAV_MESSAGE)

    (channels,) = struct.unpack_from("<H", view, 22)
    (rate,) = struct.unpack_from("<I", view, 24)
    (bits_per_sample,) = struct.unpack_from("<H", view, 34)
    if channels != ASR_CHANNELS or rate != ASR_SAMPLE_RATE or bits_per_sample != ASR_BITS_PER_SAMPLE:
        raise InvalidAudioError(WRONG_FORMAT_MESSAGE)

    (file_size,) = struct.unpack_from("<I", view, 4)
    offset = _RIFF_HEADER_SIZE
    while offset + 8 <= len(view):
        chunk_id, chunk_size = struct.unpack_from("<4sI", view, offset)
        if chunk_id == b"data":
            return view[offset + 8:]
        if offset > file_size:
            break
        logger.debug("Skipping WAV chunk %r (%d bytes)", chunk_id, chunk_size)
        offset += 8 + chunk_size

    raise InvalidAudioError(NO_DATA_MESSAGE)
