"""Version information for the conversation web API."""

from __future__ import annotations

from enum import Enum

# Public endpoint of the web API. Not configurable in this layer.
API_BASE_URL = "https://conversation.pullstring.ai/v1/"


class Feature(Enum):
    """Optional server features the client can probe for."""

    STREAMING_ASR = 0


def has_feature(feature: Feature) -> bool:
    """
    Check whether the endpoint currently supports a feature.

    Streaming ASR is not available, so progressive capture is batched and
    sent in one request when the capture stops.
    """

    return False
