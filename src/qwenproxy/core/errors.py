"""Error types for the Qwen Image Proxy.

Every failure the proxy itself produces is a :class:`ProxyError` subclass
carrying the HTTP status it maps to.  The FastAPI layer renders any of them
as ``{"error": "<message>"}`` (see :mod:`qwenproxy.api.main`).

========================  =====================================  ======
Exception                 Raised when                            Status
========================  =====================================  ======
``InvalidInput``          empty prompt / task id, bad body       400
``ConfigurationError``    ``DASHSCOPE_*`` missing or invalid     500
``UpstreamUnavailable``   DashScope could not be reached         500
``UpstreamProtocolError`` DashScope body is not a JSON object    500
========================  =====================================  ======

Errors reported *by* DashScope (status >= 400 with a JSON body) are not
exceptions here: they are relayed to the caller unchanged.  This module
only classifies them for logging via :func:`classify_upstream_error`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ProxyError(Exception):
    """Base class for all errors raised by the proxy."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(ProxyError):
    """The caller sent an empty prompt, empty task ID, or malformed body."""

    status_code = 400


class ConfigurationError(ProxyError):
    """The DashScope settings are missing or invalid."""

    status_code = 500


class UpstreamUnavailable(ProxyError):
    """The outbound call failed at the transport level (DNS, connect, timeout)."""

    status_code = 500


class UpstreamProtocolError(ProxyError):
    """DashScope answered, but the body could not be parsed as a JSON object."""

    status_code = 500


# ---------------------------------------------------------------------------
# Upstream error classification (logging only).
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UpstreamErrorInfo:
    """Human-oriented description of an error reported by DashScope.

    Attributes:
        code: DashScope error code, or a fallback derived from the status.
        user_message: Short description suitable for an operator log line.
        suggestion: What to try next.
        retryable: Whether repeating the same request could succeed.
    """

    code: str
    user_message: str
    suggestion: str
    retryable: bool


_KNOWN_ERRORS: dict[str, tuple[str, str, bool]] = {
    "InvalidApiKey": (
        "API key is invalid or missing",
        "Check that DASHSCOPE_API_KEY is set correctly",
        False,
    ),
    "RateLimitExceeded": (
        "Too many requests - rate limit exceeded",
        "Wait a few minutes before trying again",
        True,
    ),
    "Throttling": (
        "Too many requests - rate limit exceeded",
        "Wait a few minutes before trying again",
        True,
    ),
    "QuotaExceeded": (
        "API quota exceeded - no more generations available",
        "Check the Alibaba Cloud account to add more quota",
        False,
    ),
    "DataInspectionFailed": (
        "Prompt blocked by content moderation",
        "Rephrase the prompt and avoid sensitive content",
        False,
    ),
    "InvalidRequest": (
        "Invalid request format",
        "The request shape was rejected by DashScope",
        False,
    ),
    "TaskNotFound": (
        "Task not found - it may have expired",
        "Submit the generation again",
        True,
    ),
    "TaskFailed": (
        "Image generation failed on the server",
        "Try a different prompt or check the DashScope console",
        True,
    ),
}


def classify_upstream_error(status_code: int, body: dict[str, Any]) -> UpstreamErrorInfo:
    """Describe an error response returned by DashScope.

    Known DashScope ``code`` values map to fixed descriptions.  Anything else
    falls back to the HTTP status: 401 is an authentication failure, 429 a
    rate limit, 5xx a retryable server error.

    Args:
        status_code: HTTP status returned by DashScope (expected >= 400).
        body: Parsed JSON body of the response.

    Returns:
        An :class:`UpstreamErrorInfo`.  The response relayed to the caller
        is never affected by this classification.
    """
    code = body.get("code")
    if isinstance(code, str) and code in _KNOWN_ERRORS:
        user_message, suggestion, retryable = _KNOWN_ERRORS[code]
        return UpstreamErrorInfo(code, user_message, suggestion, retryable)

    message = body.get("message")
    if not isinstance(message, str):
        message = None
    fallback_code = code if isinstance(code, str) and code else "Unknown"

    if status_code == 401:
        return UpstreamErrorInfo(
            "AuthFailed",
            "Authentication failed",
            "Check the API key configuration",
            False,
        )
    if status_code == 429:
        return UpstreamErrorInfo(
            "RateLimitExceeded",
            "Too many requests",
            "Wait a few minutes before trying again",
            True,
        )
    if status_code >= 500:
        return UpstreamErrorInfo(
            fallback_code,
            message or "Server error - DashScope API is having issues",
            "Try again in a few minutes",
            True,
        )
    return UpstreamErrorInfo(
        fallback_code,
        message or f"Request failed ({status_code})",
        "Check the request parameters",
        False,
    )
