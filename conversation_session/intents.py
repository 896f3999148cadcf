"""Call intents: one frozen dataclass per kind of conversation call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from .models import AudioFormat


@dataclass(frozen=True)
class Start:
    project: str
    time_zone_offset: Optional[float] = None


@dataclass(frozen=True)
class SendText:
    text: str


@dataclass(frozen=True)
class SendActivity:
    activity: str


@dataclass(frozen=True)
class SendEvent:
    name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GoTo:
    response_id: str


@dataclass(frozen=True)
class CheckTimedResponse:
    pass


@dataclass(frozen=True)
class GetEntities:
    names: Sequence[str]


@dataclass(frozen=True)
class SetEntities:
    """Entities as a sequence of ``{"name": ..., "value": ...}`` items or :class:`Entity` objects."""

    entities: Sequence[Any]


@dataclass(frozen=True)
class SendAudioChunk:
    """
    A block of float32 samples for the progressive capture.

    Consumed by the audio framer while recording; it never produces a request
    and is not part of :data:`CallIntent`.
    """

    samples: Any


@dataclass(frozen=True)
class SendAudioComplete:
    """End of a progressive capture; carries the accumulated PCM bytes."""

    pcm: bytes


@dataclass(frozen=True)
class SendAudioBlob:
    audio: Any
    audio_format: AudioFormat = AudioFormat.WAV_16K


CallIntent = Union[
    Start,
    SendText,
    SendActivity,
    SendEvent,
    GoTo,
    CheckTimedResponse,
    GetEntities,
    SetEntities,
    SendAudioComplete,
    SendAudioBlob,
]
