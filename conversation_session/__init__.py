"""
Conversation session package.

Client-side session layer for a remote conversational web API: builds each
request from a request context, threads the conversation and participant
ids across calls, and frames audio for speech input.
The CLI entrypoint is ``python -m conversation_session`` or ``python main.py``.
"""

from .audio import ASR_CHANNELS, ASR_SAMPLE_RATE, AudioFramer, parse_wav
from .models import AudioFormat, BuildType, RequestContext, Response
from .session import SessionController

__all__ = [
    "ASR_CHANNELS",
    "ASR_SAMPLE_RATE",
    "AudioFormat",
    "AudioFramer",
    "BuildType",
    "RequestContext",
    "Response",
    "SessionController",
    "parse_wav",
]
