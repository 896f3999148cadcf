"""Shared dataclasses for the conversation session layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class BuildType(str, Enum):
    """Which build of a project the server should run."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"


class AudioFormat(Enum):
    """Audio container formats accepted by ``send_audio``."""

    RAW_PCM_16K = 0
    WAV_16K = 1


@dataclass
class RequestContext:
    """
    Session and auth parameters read by every outgoing call.

    The session controller mutates ``conversation_id`` and ``participant_id``
    after each successful response; everything else is owned by the caller.

    Attributes:
        api_key: Bearer credential sent as `Authorization: Bearer <key>`.
        conversation_id: Server-assigned id of the current conversation.
        participant_id: Server-assigned id of the caller, reusable across conversations.
        language: ASR language hint, always forwarded as the `asr_language` param.
        locale: Optional locale forwarded as the `locale` param.
        account_id: Optional account forwarded as the `account` param.
        build_type: Project build to run; only sent when not production.
        restart_if_modified: Tri-state; only an explicit ``False`` is sent.
        time_zone_offset: Optional offset sent with ``start`` only.

    Usage:
        >>> context = RequestContext(api_key="secret", language="en-US")
        >>> context.conversation_id is None
        True
    """

    api_key: Optional[str] = None
    conversation_id: Optional[str] = None
    participant_id: Optional[str] = None
    language: Optional[str] = None
    locale: Optional[str] = None
    account_id: Optional[str] = None
    build_type: BuildType = BuildType.PRODUCTION
    restart_if_modified: Optional[bool] = True
    time_zone_offset: Optional[float] = None

    @property
    def is_valid(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class JsonBody:
    """Request body serialized as JSON."""

    value: Dict[str, Any]
    content_type: ClassVar[str] = "application/json"


@dataclass(frozen=True)
class BinaryBody:
    """Request body sent as raw bytes."""

    data: bytes
    content_type: str


Body = Union[JsonBody, BinaryBody]


@dataclass(frozen=True)
class PreparedRequest:
    """Everything the transport needs to perform one call."""

    endpoint: str
    headers: Dict[str, str]
    params: Dict[str, Optional[str]]
    body: Body


@dataclass
class Status:
    """Outcome of a call, either decoded from the server or synthesized locally."""

    success: bool = True
    message: Optional[str] = None
    code: int = 200

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Status":
        success = bool(payload.get("success", False))
        code = _status_code(payload.get("code"), 200 if success else 500)
        return cls(success=success, message=payload.get("message"), code=code)


@dataclass
class DialogOutput:
    """A line of dialog returned by the server."""

    text: str
    id: Optional[str] = None
    uri: Optional[str] = None
    video_uri: Optional[str] = None
    duration: float = 0.0
    character: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    type: str = "dialog"


@dataclass
class BehaviorOutput:
    """An action the caller should perform, with optional parameters."""

    behavior: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    type: str = "behavior"


Output = Union[DialogOutput, BehaviorOutput]


@dataclass
class Entity:
    """A named piece of dialog state."""

    name: str
    value: Any
    kind: ClassVar[str] = "entity"

    def as_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}

    @staticmethod
    def from_json(payload: Mapping[str, Any]) -> "Entity":
        """Pick the entity kind from the JSON type of its value."""
        name = str(payload.get("name", ""))
        value = payload.get("value")
        # bool before numbers, bool is an int subclass
        if isinstance(value, bool):
            return Flag(name, value)
        if isinstance(value, (int, float)):
            return Counter(name, value)
        if isinstance(value, list):
            return ListEntity(name, value)
        return Label(name, value)


class Label(Entity):
    kind = "label"


class Counter(Entity):
    kind = "counter"


class Flag(Entity):
    kind = "flag"


class ListEntity(Entity):
    kind = "list"


@dataclass
class Response:
    """
    Normalized result of a conversation call.

    Locally detected errors use the same shape as server replies, so callers
    branch on ``status.success`` rather than on how the call failed.
    """

    status: Status = field(default_factory=Status)
    conversation_id: Optional[str] = None
    participant_id: Optional[str] = None
    timed_response_interval: Optional[float] = None
    asr_hypothesis: Optional[str] = None
    etag: Optional[str] = None
    outputs: List[Output] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str, code: int = 500) -> "Response":
        return cls(status=Status(success=False, message=message, code=code))

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Response":
        """
        Decode a JSON payload from the conversation endpoint.

        Accepted status shapes (first match wins):
            {"status": {"success": bool, "message": str, "code": int}}
            {"error": {"message": str, "code": int}} or {"error": "text"}
            anything else is a success.
        """

        status_raw = payload.get("status")
        error = payload.get("error")
        if isinstance(status_raw, Mapping):
            status = Status.from_json(status_raw)
        elif isinstance(error, Mapping):
            status = Status(success=False, message=error.get("message"), code=_status_code(error.get("code"), 500))
        elif error:
            status = Status(success=False, message=str(error), code=500)
        else:
            status = Status()

        interval = payload.get("timed_response_interval")
        return cls(
            status=status,
            conversation_id=payload.get("conversation"),
            participant_id=payload.get("participant"),
            timed_response_interval=float(interval) if interval is not None else None,
            asr_hypothesis=payload.get("asr_hypothesis"),
            etag=payload.get("etag"),
            outputs=_decode_outputs(payload.get("outputs") or []),
            entities=[Entity.from_json(e) for e in payload.get("entities") or [] if isinstance(e, Mapping)],
            raw=dict(payload),
        )

    @property
    def texts(self) -> List[str]:
        """Text of every dialog output, in order."""
        return [o.text for o in self.outputs if isinstance(o, DialogOutput)]

    @property
    def behaviors(self) -> List[BehaviorOutput]:
        return [o for o in self.outputs if isinstance(o, BehaviorOutput)]


def _status_code(value: Any, default: int) -> int:
    """Numeric status code, or ``default`` when the server sent none or a non-numeric one."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return default


def _decode_outputs(items: List[Any]) -> List[Output]:
    outputs: List[Output] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        kind = item.get("type")
        if kind == "behavior":
            outputs.append(
                BehaviorOutput(
                    behavior=str(item.get("behavior", "")),
                    parameters=dict(item.get("parameters") or {}),
                    id=item.get("id"),
                )
            )
        elif kind in ("dialog", "text") or "text" in item:
            outputs.append(
                DialogOutput(
                    text=str(item.get("text", "")),
                    id=item.get("id"),
                    uri=item.get("uri"),
                    video_uri=item.get("video_uri"),
                    duration=float(item.get("duration") or 0.0),
                    character=item.get("character"),
                    user_metadata=dict(item.get("user_metadata") or {}),
                    type=str(kind or "dialog"),
                )
            )
        else:
            logger.debug("Skipping output with unknown type %r", kind)
    return outputs
