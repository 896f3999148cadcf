"""Turns a call intent plus the request context into a prepared HTTP request."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .audio import PCM_CONTENT_TYPE, parse_wav
from .exceptions import InvalidAudioError, InvalidEntitiesError
from .intents import (
    CallIntent,
    CheckTimedResponse,
    GetEntities,
    GoTo,
    SendActivity,
    SendAudioBlob,
    SendAudioComplete,
    SendEvent,
    SendText,
    SetEntities,
    Start,
)
from .models import AudioFormat, BinaryBody, Body, BuildType, Entity, JsonBody, PreparedRequest, RequestContext

CONVERSATION_ENDPOINT = "conversation"

# Session-wide body fields, applied in order after the intent payload. A field
# is only written when its predicate holds, so server defaults apply otherwise.
SessionField = Tuple[str, Callable[[RequestContext], bool], Callable[[RequestContext], Any]]

SESSION_FIELDS: List[SessionField] = [
    (
        "build_type",
        lambda ctx: BuildType(ctx.build_type) is not BuildType.PRODUCTION,
        lambda ctx: BuildType(ctx.build_type).value,
    ),
    (
        "restart_if_modified",
        lambda ctx: ctx.restart_if_modified is False,
        lambda ctx: False,
    ),
    (
        "participant",
        lambda ctx: bool(ctx.participant_id),
        lambda ctx: ctx.participant_id,
    ),
]


def endpoint_for(context: RequestContext) -> str:
    if context.conversation_id:
        return f"{CONVERSATION_ENDPOINT}/{context.conversation_id}"
    return CONVERSATION_ENDPOINT


def headers_for(context: RequestContext, content_type: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {context.api_key}",
        "Accept": "application/json",
        "Content-Type": content_type,
    }


def params_for(context: RequestContext) -> Dict[str, Optional[str]]:
    params: Dict[str, Optional[str]] = {"asr_language": context.language}
    if context.locale:
        params["locale"] = context.locale
    if context.account_id:
        params["account"] = context.account_id
    return params


def session_body(context: RequestContext, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge the session-wide fields into an intent payload."""
    body: Dict[str, Any] = {}
    for key, applies, value in SESSION_FIELDS:
        if applies(context):
            body[key] = value(context)
    body.update(payload)
    return body


def intent_payload(intent: CallIntent) -> Dict[str, Any]:
    """
    JSON payload for every intent that is sent as JSON.

    Raises:
        InvalidEntitiesError: entity arguments that are not lists or tuples.
        TypeError: for audio intents, which have binary bodies.
    """

    if isinstance(intent, Start):
        payload: Dict[str, Any] = {"project": intent.project}
        if intent.time_zone_offset is not None:
            payload["time_zone_offset"] = intent.time_zone_offset
        return payload
    if isinstance(intent, SendText):
        return {"text": intent.text}
    if isinstance(intent, SendActivity):
        return {"activity": intent.activity}
    if isinstance(intent, SendEvent):
        return {"event": {"name": intent.name, "parameters": dict(intent.parameters or {})}}
    if isinstance(intent, GoTo):
        return {"goto": intent.response_id}
    if isinstance(intent, CheckTimedResponse):
        return {}
    if isinstance(intent, GetEntities):
        if not isinstance(intent.names, (list, tuple)):
            raise InvalidEntitiesError("entities sent to getEntities must be an array")
        return {"get_entities": list(intent.names)}
    if isinstance(intent, SetEntities):
        if not isinstance(intent.entities, (list, tuple)):
            raise InvalidEntitiesError("entities sent to setEntities must be an array")
        values: Dict[str, Any] = {}
        for entity in intent.entities:
            name, value = _entity_pair(entity)
            values[name] = value
        return {"set_entities": values}
    raise TypeError(f"{type(intent).__name__} has no JSON payload")


def audio_payload(intent: CallIntent) -> bytes:
    """
    Raw PCM bytes for the audio intents.

    Raises:
        InvalidAudioError: audio that is not bytes-like, in an unsupported
            format, or not a readable WAV container.
    """

    if isinstance(intent, SendAudioComplete):
        return bytes(intent.pcm)
    if isinstance(intent, SendAudioBlob):
        if not isinstance(intent.audio, (bytes, bytearray, memoryview)):
            raise InvalidAudioError("Audio sent to sendAudio is not a bytes-like object")
        if intent.audio_format is not AudioFormat.WAV_16K:
            raise InvalidAudioError("Unsupported format sent to sendAudio.")
        return parse_wav(intent.audio)
    raise TypeError(f"{type(intent).__name__} has no audio payload")


def build_request(intent: CallIntent, context: RequestContext) -> PreparedRequest:
    """
    Build the endpoint, headers, params and body for one call.

    Usage:
        >>> ctx = RequestContext(api_key="key", conversation_id="c1")
        >>> build_request(SendText("hello"), ctx).endpoint
        'conversation/c1'
    """

    body: Body
    if isinstance(intent, (SendAudioComplete, SendAudioBlob)):
        body = BinaryBody(audio_payload(intent), PCM_CONTENT_TYPE)
    else:
        body = JsonBody(session_body(context, intent_payload(intent)))

    return PreparedRequest(
        endpoint=endpoint_for(context),
        headers=headers_for(context, body.content_type),
        params=params_for(context),
        body=body,
    )


def _entity_pair(entity: Any) -> Tuple[str, Any]:
    if isinstance(entity, Entity):
        return entity.name, entity.value
    if isinstance(entity, Mapping) and "name" in entity:
        return entity["name"], entity.get("value")
    raise InvalidEntitiesError("entities sent to setEntities must be name/value pairs")
