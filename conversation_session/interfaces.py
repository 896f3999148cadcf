"""Protocol interfaces for dependency injection."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from .models import Body


class Transport(Protocol):
    """Performs one HTTP call against the conversation web API."""

    def post(
        self,
        endpoint: str,
        params: Mapping[str, Optional[str]],
        headers: Mapping[str, str],
        body: Body,
    ) -> Dict[str, Any]:
        """
        Send the request and return the decoded JSON payload.

        Raises:
            TransportError: when no JSON payload could be obtained.
        """


class AudioSource(Protocol):
    """Produces float32 sample blocks for a progressive capture."""

    def capture(self, on_samples: Callable[[Any], None]) -> None:
        """Block while recording, passing every captured block to ``on_samples``."""
