"""Configuration helpers for the conversation session CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .models import BuildType, RequestContext

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class AppConfig:
    """
    Runtime configuration for the CLI harness.

    Attributes:
        api_key: Bearer credential for the web API.
        project: Project id passed to ``start``.
        language: ASR language hint (e.g. "en-US").
        locale: Optional locale forwarded with every call.
        account_id: Optional account id forwarded with every call.
        build_type: Project build to run.
        restart_if_modified: Tri-state; ``None`` leaves the server default.
        time_zone_offset: Optional offset sent when the conversation starts.
        request_timeout: HTTP timeout in seconds.
        mode: "console" or "audio".
        record_seconds: Maximum seconds per utterance in audio mode.

    Usage:
        >>> config = AppConfig.from_env()
        >>> config.request_context().api_key
        'my-key'
    """

    api_key: Optional[str]
    project: Optional[str]
    language: Optional[str]
    locale: Optional[str]
    account_id: Optional[str]
    build_type: BuildType
    restart_if_modified: Optional[bool]
    time_zone_offset: Optional[float]
    request_timeout: float
    mode: str
    record_seconds: float

    @classmethod
    def from_env(cls, *, load_dotenv_file: bool = True) -> "AppConfig":
        """
        Build an :class:`AppConfig` from environment variables.

        Supported variables:
            - CONVERSATION_API_KEY: Bearer credential (required to start a conversation).
            - CONVERSATION_PROJECT: Project id used by the CLI.
            - CONVERSATION_LANGUAGE: ASR language hint.
            - CONVERSATION_LOCALE: Locale forwarded with each call.
            - CONVERSATION_ACCOUNT_ID: Account id forwarded with each call.
            - CONVERSATION_BUILD_TYPE: "production" (default), "staging" or "development".
            - CONVERSATION_RESTART_IF_MODIFIED: "true"/"false"; unset keeps the server default.
            - CONVERSATION_TIME_ZONE_OFFSET: Offset sent when the conversation starts.
            - CONVERSATION_REQUEST_TIMEOUT: Timeout in seconds (float, default: 10).
            - CONVERSATION_MODE: "console" (default) or "audio".
            - CONVERSATION_RECORD_SECONDS: Max seconds per utterance in audio mode (default: 5).
        """

        if load_dotenv_file:
            load_dotenv()

        build_raw = os.environ.get("CONVERSATION_BUILD_TYPE", "production").strip().lower()
        try:
            build_type = BuildType(build_raw)
        except ValueError as exc:
            raise ValueError(
                "CONVERSATION_BUILD_TYPE must be one of: production, staging, development"
            ) from exc

        restart_raw = os.environ.get("CONVERSATION_RESTART_IF_MODIFIED", "").strip().lower()
        if not restart_raw:
            restart_if_modified: Optional[bool] = None
        elif restart_raw in _TRUE:
            restart_if_modified = True
        elif restart_raw in _FALSE:
            restart_if_modified = False
        else:
            raise ValueError("CONVERSATION_RESTART_IF_MODIFIED must be true or false")

        offset_raw = os.environ.get("CONVERSATION_TIME_ZONE_OFFSET") or None
        try:
            time_zone_offset = float(offset_raw) if offset_raw is not None else None
        except ValueError as exc:
            raise ValueError("CONVERSATION_TIME_ZONE_OFFSET must be a number") from exc

        try:
            request_timeout = float(os.environ.get("CONVERSATION_REQUEST_TIMEOUT", "10"))
        except ValueError as exc:
            raise ValueError("CONVERSATION_REQUEST_TIMEOUT must be a number") from exc

        try:
            record_seconds = float(os.environ.get("CONVERSATION_RECORD_SECONDS", "5"))
        except ValueError as exc:
            raise ValueError("CONVERSATION_RECORD_SECONDS must be a number") from exc

        return cls(
            api_key=os.environ.get("CONVERSATION_API_KEY") or None,
            project=os.environ.get("CONVERSATION_PROJECT") or None,
            language=os.environ.get("CONVERSATION_LANGUAGE") or None,
            locale=os.environ.get("CONVERSATION_LOCALE") or None,
            account_id=os.environ.get("CONVERSATION_ACCOUNT_ID") or None,
            build_type=build_type,
            restart_if_modified=restart_if_modified,
            time_zone_offset=time_zone_offset,
            request_timeout=request_timeout,
            mode=os.environ.get("CONVERSATION_MODE", "console").lower(),
            record_seconds=record_seconds,
        )

    def request_context(self) -> RequestContext:
        """Initial request context for a new conversation."""
        return RequestContext(
            api_key=self.api_key,
            language=self.language,
            locale=self.locale,
            account_id=self.account_id,
            build_type=self.build_type,
            restart_if_modified=self.restart_if_modified,
            time_zone_offset=self.time_zone_offset,
        )
