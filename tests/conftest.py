"""Shared fixtures: a scripted/echoing fake transport and a WAV builder."""

import struct
from typing import Any, Callable, Dict, List, Sequence, Tuple

import pytest

from conversation_session.models import BinaryBody, Body, RequestContext


class FakeTransport:
    """
    In-memory stand-in for the web API.

    Without queued replies it behaves like a tiny server: ``start`` opens
    conversation ``c1`` for participant ``p1``, entity writes are stored and
    echoed, and entity reads return stored values.
    """

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.replies: List[Any] = []
        self.entities: Dict[str, Any] = {}

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]

    def queue(self, *replies: Any) -> None:
        """Queue payloads (or exceptions to raise) for the next calls."""
        self.replies.extend(replies)

    def post(self, endpoint: str, params, headers, body: Body) -> Dict[str, Any]:
        self.calls.append({"endpoint": endpoint, "params": dict(params), "headers": dict(headers), "body": body})
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return self._echo(body)

    def _echo(self, body: Body) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"conversation": "c1", "participant": "p1", "outputs": [], "entities": []}
        if isinstance(body, BinaryBody):
            payload["asr_hypothesis"] = f"{len(body.data)} bytes"
            return payload

        value = body.value
        if "set_entities" in value:
            self.entities.update(value["set_entities"])
            payload["entities"] = [{"name": k, "value": v} for k, v in value["set_entities"].items()]
        elif "get_entities" in value:
            payload["entities"] = [
                {"name": name, "value": self.entities.get(name)} for name in value["get_entities"]
            ]
        elif "text" in value:
            payload["outputs"] = [{"type": "dialog", "text": f"You said {value['text']}"}]
        return payload


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(api_key="test-key", language="en-US")


def _chunk(chunk_id: bytes, payload: bytes) -> bytes:
    return chunk_id + struct.pack("<I", len(payload)) + payload


def build_wav(
    pcm: bytes,
    *,
    channels: int = 1,
    rate: int = 16000,
    bits: int = 16,
    extra_chunks: Sequence[Tuple[bytes, bytes]] = (),
    include_data: bool = True,
) -> bytes:
    """Assemble a RIFF/WAVE buffer with optional chunks between fmt and data."""
    block_align = channels * bits // 8
    fmt = struct.pack("<HHIIHH", 1, channels, rate, rate * block_align, block_align, bits)
    body = b"WAVE" + _chunk(b"fmt ", fmt)
    for chunk_id, payload in extra_chunks:
        body += _chunk(chunk_id, payload)
    if include_data:
        body += _chunk(b"data", pcm)
    return b"RIFF" + struct.pack("<I", len(body)) + body


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    return build_wav
