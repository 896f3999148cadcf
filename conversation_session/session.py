"""Session controller: threads conversation state across calls to the web API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from .audio import AudioFramer
from .exceptions import LOCAL_ERROR_CODE, LocalRequestError, TransportError
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
from .interfaces import Transport
from .models import AudioFormat, RequestContext, Response
from .request_builder import build_request

logger = logging.getLogger(__name__)

MISSING_CONTEXT_MESSAGE = "Valid request object missing"
NO_AUDIO_MESSAGE = "Unable to extract audio data"

ResponseListener = Callable[[Response], None]


class SessionController:
    """
    Drives one conversation with the web API.

    Every call returns a :class:`Response`. Failures detected locally (missing
    API key, malformed arguments, unreadable WAV data) come back in the same
    shape as server failures, with code 500, and never reach the transport.

    Calls must be issued one at a time: each successful response rewrites the
    conversation and participant ids that the next call is built from.

    Usage:
        session = SessionController(HttpTransport())
        response = session.start("project-id", RequestContext(api_key="..."))
        response = session.send_text("hello")
        if response.timed_response_interval is not None:
            time.sleep(response.timed_response_interval)
            response = session.check_for_timed_response()
    """

    def __init__(
        self,
        transport: Transport,
        *,
        context: Optional[RequestContext] = None,
        on_response: Optional[ResponseListener] = None,
        framer: Optional[AudioFramer] = None,
    ) -> None:
        self._transport = transport
        self._context = context
        self._on_response = on_response
        self._framer = framer or AudioFramer()

    @property
    def context(self) -> Optional[RequestContext]:
        """The request context used by the most recent call."""
        return self._context

    def start(self, project: str, context: Optional[RequestContext] = None) -> Response:
        """Start a new conversation for ``project``."""
        active = self._ensure_context(context)
        if active is None:
            return self._local_failure(MISSING_CONTEXT_MESSAGE)
        logger.info("Starting conversation for project %s", project)
        return self._dispatch(Start(project, active.time_zone_offset))

    def send_text(self, text: str, context: Optional[RequestContext] = None) -> Response:
        return self._dispatch(SendText(text), context)

    def send_activity(self, activity: str, context: Optional[RequestContext] = None) -> Response:
        """Send an activity name or id."""
        return self._dispatch(SendActivity(activity), context)

    def send_event(
        self,
        name: str,
        parameters: Optional[Mapping[str, Any]] = None,
        context: Optional[RequestContext] = None,
    ) -> Response:
        return self._dispatch(SendEvent(name, dict(parameters or {})), context)

    def go_to(self, response_id: str, context: Optional[RequestContext] = None) -> Response:
        """Jump the conversation directly to a response."""
        return self._dispatch(GoTo(response_id), context)

    def check_for_timed_response(self, context: Optional[RequestContext] = None) -> Response:
        """
        Ask whether a time-based response is ready.

        Only useful after a response with a ``timed_response_interval``; wait
        that many seconds first. An empty response means nothing fired yet.
        """
        return self._dispatch(CheckTimedResponse(), context)

    def get_entities(self, names: Sequence[str], context: Optional[RequestContext] = None) -> Response:
        """Request the values of the named labels, counters, flags and lists."""
        return self._dispatch(GetEntities(names), context)

    def set_entities(self, entities: Sequence[Any], context: Optional[RequestContext] = None) -> Response:
        """
        Change entity values.

        ``entities`` holds ``{"name": ..., "value": ...}`` mappings or
        :class:`~conversation_session.models.Entity` objects. When a name
        appears twice the last value wins.
        """
        return self._dispatch(SetEntities(entities), context)

    def send_audio(
        self,
        audio: Any,
        audio_format: AudioFormat = AudioFormat.WAV_16K,
        context: Optional[RequestContext] = None,
    ) -> Response:
        """Send a whole utterance as a mono 16-bit 16 kHz WAV buffer."""
        return self._dispatch(SendAudioBlob(audio, audio_format), context)

    def start_audio(self, context: Optional[RequestContext] = None) -> Optional[Response]:
        """
        Begin a progressive capture.

        Returns ``None`` when recording started, or a failure response when
        there is no usable request context.
        """
        if self._ensure_context(context) is None:
            return self._local_failure(MISSING_CONTEXT_MESSAGE)
        self._framer.start()
        return None

    def add_audio(self, samples: Any) -> None:
        """Append a block of mono float32 samples at 16 kHz."""
        self._framer.add_samples(samples)

    def stop_audio(self) -> Response:
        """Send everything captured since ``start_audio`` using the current context."""
        if not self._framer.is_recording:
            return self._local_failure(NO_AUDIO_MESSAGE)
        pcm = self._framer.drain()
        self._framer.flush()
        logger.debug("Submitting %d bytes of captured audio", len(pcm))
        return self._dispatch(SendAudioComplete(pcm))

    def get_conversation_id(self) -> Optional[str]:
        if self._context and self._context.conversation_id:
            return self._context.conversation_id
        return None

    def get_participant_id(self) -> Optional[str]:
        if self._context and self._context.participant_id:
            return self._context.participant_id
        return None

    def _ensure_context(self, context: Optional[RequestContext]) -> Optional[RequestContext]:
        """Adopt ``context`` when given; return the held context if it is usable."""
        if context is not None:
            self._context = context
        if self._context is None or not self._context.is_valid:
            return None
        return self._context

    def _dispatch(self, intent: CallIntent, context: Optional[RequestContext] = None) -> Response:
        active = self._ensure_context(context)
        if active is None:
            return self._local_failure(MISSING_CONTEXT_MESSAGE)

        try:
            request = build_request(intent, active)
        except LocalRequestError as exc:
            return self._local_failure(exc.message)

        logger.debug("POST %s (%s)", request.endpoint, type(intent).__name__)
        try:
            payload = self._transport.post(request.endpoint, request.params, request.headers, request.body)
        except TransportError as exc:
            logger.error("Conversation request failed: %s", exc.message)
            return self._deliver(Response.failure(exc.message, exc.code))

        response = Response.from_json(payload)
        if response.status.success:
            self._commit(active, response)
        else:
            logger.warning(
                "Conversation call %s failed (%s): %s",
                type(intent).__name__,
                response.status.code,
                response.status.message,
            )
        return self._deliver(response)

    def _commit(self, context: RequestContext, response: Response) -> None:
        if response.conversation_id:
            context.conversation_id = response.conversation_id
        if response.participant_id:
            context.participant_id = response.participant_id

    def _local_failure(self, message: str) -> Response:
        logger.warning("Rejected call locally: %s", message)
        return self._deliver(Response.failure(message, LOCAL_ERROR_CODE))

    def _deliver(self, response: Response) -> Response:
        if self._on_response is not None:
            self._on_response(response)
        return response
