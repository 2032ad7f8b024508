"""Exception hierarchy and transient-failure classification.

Every component raises one of the exceptions below (or lets an upstream
library exception propagate) and the request orchestrator is the only place
that turns them into HTTP responses.

Hierarchy
---------
::

    TimeglitchError
    ├── InvalidInputError            400
    ├── ConfigurationError           500
    ├── MalformedModelOutputError    502
    │   ├── NoJsonFoundError
    │   └── WorldStateValidationError
    └── UpstreamError                500
        ├── NoImageReturnedError     502
        └── TransientUpstreamError   503 (overload escalation)
            └── ImageTimeoutError

Transient classification
------------------------
:func:`is_transient_error` first looks at structured information (Gemini
``APIError.code``, httpx transport errors, ``ConnectionError``) and only then
falls back to matching known substrings in the error text.  The substring
path is kept because some failures surface as plain exceptions whose only
signal is the message.
"""

from __future__ import annotations

import httpx
from google.genai import errors as genai_errors

# Gemini status codes worth retrying.
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_OVERLOAD_MARKERS = ("overloaded", "service unavailable", "internal error", "backend error", "unavailable")
_RATE_LIMIT_MARKERS = ("rate", "quota", "resource has been exhausted", "resource exhausted", "resource_exhausted")
_NETWORK_MARKERS = ("fetch", "network", "econnreset", "etimedout", "timeout", "timed out", "connection reset")


class TimeglitchError(Exception):
    """Base class for all errors raised by the generator."""


class InvalidInputError(TimeglitchError):
    """The inbound request body is malformed."""


class ConfigurationError(TimeglitchError):
    """A required setting (the upstream API key) is missing."""


class MalformedModelOutputError(TimeglitchError):
    """The text model's output could not be turned into a usable world state."""


class NoJsonFoundError(MalformedModelOutputError):
    """No ``{ ... }`` span exists in the model output."""

    def __init__(self, message: str = "No JSON object found in model output") -> None:
        super().__init__(message)


class WorldStateValidationError(MalformedModelOutputError):
    """Parsed JSON violates a structural invariant of the world state."""


class UpstreamError(TimeglitchError):
    """A hosted model call failed and will not be retried further."""


class NoImageReturnedError(UpstreamError):
    """The image model answered without an inline image part."""

    def __init__(self, text_snippet: str | None = None) -> None:
        self.text_snippet = text_snippet
        message = "No image returned from Gemini image model"
        if text_snippet:
            message += f"; text: {text_snippet}"
        super().__init__(message)


class TransientUpstreamError(UpstreamError):
    """A hosted model call kept failing with a likely-temporary condition."""


class ImageTimeoutError(TransientUpstreamError):
    """An image call (retries included) exceeded its wall-clock budget."""

    def __init__(self, index: int, timeout: float) -> None:
        self.index = index
        self.timeout = timeout
        super().__init__(f"Image generation {index} timed out after {timeout:g}s")


def is_transient_error(exc: BaseException) -> bool:
    """Return ``True`` when *exc* looks like overload, rate limiting, or a network blip.

    Args:
        exc: Any exception raised by (or around) an upstream call.

    Returns:
        Whether the failure is worth retrying.
    """
    if isinstance(exc, TransientUpstreamError):
        return True
    if isinstance(exc, TimeglitchError):
        return False
    # A structured status code is authoritative; messages like
    # "... for generateContent" must not reach the substring fallback.
    if isinstance(exc, genai_errors.APIError):
        return exc.code in TRANSIENT_STATUS_CODES
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, ConnectionError, TimeoutError)):
        return True

    # Fallback: message heuristics.
    message = str(exc)
    lowered = message.lower()
    if "503" in message or "429" in message:
        return True
    return any(
        marker in lowered
        for marker in (*_OVERLOAD_MARKERS, *_RATE_LIMIT_MARKERS, *_NETWORK_MARKERS)
    )
