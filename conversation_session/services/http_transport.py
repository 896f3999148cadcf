"""HTTP transport for the conversation web API."""

from __future__ import annotations

import http.client
import json
import logging
import ssl
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional

from ..exceptions import TransportError
from ..models import BinaryBody, Body, JsonBody
from ..version import API_BASE_URL

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    Minimal urllib transport that posts prepared requests to the web API.

    Error responses that carry a JSON body are returned like any other payload
    so the server's status message reaches the caller unchanged.

    Usage:
        >>> transport = HttpTransport(timeout=10.0)
        >>> payload = transport.post("conversation", {"asr_language": None}, headers, JsonBody({"project": "p"}))
        >>> payload["conversation"]
        'e5d1...'
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = 10.0,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._ssl_context = ssl_context

    def url_for(self, endpoint: str, params: Mapping[str, Optional[str]]) -> str:
        query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
        url = urllib.parse.urljoin(self._base_url, endpoint.lstrip("/"))
        return f"{url}?{query}" if query else url

    def post(
        self,
        endpoint: str,
        params: Mapping[str, Optional[str]],
        headers: Mapping[str, str],
        body: Body,
    ) -> Dict[str, Any]:
        url = self.url_for(endpoint, params)
        request = urllib.request.Request(
            url,
            data=_encode_body(body),
            headers=dict(headers),
            method="POST",
        )

        logger.debug("Sending to %s...", url)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:  # type: ignore[arg-type]
                raw = response.read()
                content_type = response.headers.get("Content-Type", "")
                logger.debug("Received response (%d bytes)", len(raw))
        except urllib.error.HTTPError as exc:
            return _error_payload(exc.code, exc.read())
        except urllib.error.URLError as exc:
            raise TransportError(f"Conversation request could not reach the server: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise TransportError(f"Conversation request failed: {exc}") from exc

        if "application/json" not in content_type:
            raise TransportError(f"Unexpected content type: {content_type}")

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TransportError("Conversation response was not valid JSON") from exc

        if not isinstance(payload, dict):
            raise TransportError("Conversation response was not a JSON object")
        return payload


def _encode_body(body: Body) -> bytes:
    if isinstance(body, JsonBody):
        return json.dumps(body.value).encode("utf-8")
    if isinstance(body, BinaryBody):
        return bytes(body.data)
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


def _error_payload(code: int, raw: bytes) -> Dict[str, Any]:
    """Build a failure payload from an HTTP error, keeping the server's JSON when present."""
    detail = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(detail)
    except json.JSONDecodeError:
        payload = None

    if not isinstance(payload, dict):
        payload = {}
    if not isinstance(payload.get("status"), dict):
        error = payload.get("error")
        message = error.get("message") if isinstance(error, dict) else (error or detail or None)
        payload["status"] = {
            "success": False,
            "message": message or f"Conversation request failed ({code})",
            "code": code,
        }
    return payload
