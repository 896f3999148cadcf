"""Microphone capture backed by sounddevice, feeding a progressive audio session."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import numpy as np

from ..audio import ASR_CHANNELS, ASR_SAMPLE_RATE
from ..interfaces import AudioSource

logger = logging.getLogger(__name__)


class SoundDeviceCapture(AudioSource):
    """
    Streams blocks from the default microphone until the speaker goes quiet.

    Blocks are delivered as float32 arrays at 16 kHz mono, the format the
    session's ``add_audio`` expects.

    Args:
        max_seconds: Maximum capture duration (safety limit, 0 disables).
        silence_duration: Seconds of silence after speech before stopping.
        silence_threshold: Mean absolute level below which a block counts as silence.

    Usage:
        capture = SoundDeviceCapture(max_seconds=10)
        session.start_audio()
        capture.capture(session.add_audio)
        response = session.stop_audio()
    """

    def __init__(
        self,
        *,
        max_seconds: float = 5.0,
        silence_duration: float = 1.5,
        silence_threshold: float = 0.01,
    ) -> None:
        self.sample_rate = ASR_SAMPLE_RATE
        self.channels = ASR_CHANNELS
        self.max_seconds = max_seconds
        self.silence_duration = silence_duration
        self.silence_threshold = silence_threshold

    def capture(self, on_samples: Callable[[Any], None]) -> None:
        sd = _lazy_import_sounddevice()

        speech_started = False
        silence_start = None
        start_time = time.time()

        def callback(indata, frames, time_info, status):
            nonlocal speech_started, silence_start
            if status:
                logger.debug("Input stream status: %s", status)

            level = float(np.abs(indata).mean())
            if level > self.silence_threshold:
                speech_started = True
                silence_start = None
                on_samples(indata[:, 0].copy())
            elif speech_started:
                on_samples(indata[:, 0].copy())
                if silence_start is None:
                    silence_start = time.time()

        logger.info("Listening (max %ss, stops after %ss of silence)", self.max_seconds, self.silence_duration)
        with sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            callback=callback,
        ):
            while True:
                sd.sleep(100)
                if self.max_seconds > 0 and time.time() - start_time > self.max_seconds:
                    logger.info("Max duration reached (%ss)", self.max_seconds)
                    break
                if silence_start is not None and time.time() - silence_start > self.silence_duration:
                    logger.info("Silence detected, stopping")
                    break


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for microphone capture. Install the 'audio' extra.") from exc
    return sd
