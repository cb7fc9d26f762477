"""
services/error_classifier.py

Responsibility: Decides whether a failure is transient (worth retrying) or
permanent. Shared by the retry policy and the DNS reconciler.
Does NOT: retry, sleep, or log anything.
"""

from __future__ import annotations

from typing import Any, Iterable

from exceptions import DnsProviderError, NetworkError, RequestTimeoutError

# Cloudflare's "rate limited" error code.
RATE_LIMIT_ERROR_CODE = 1015

_TRANSIENT_MESSAGE_MARKERS = (
    "rate limit",
    "ratelimit",
    "too many requests",
    "temporar",
    "timeout",
    "try again",
)


def status_is_transient(status_code: int | None) -> bool:
    """
    Returns True for a missing status (no response received), 429, or any 5xx.

    Args:
        status_code: The HTTP status code, or None.

    Returns:
        Whether a failure carrying this status should be retried.
    """
    if status_code is None:
        return True
    return status_code == 429 or 500 <= status_code <= 599


def provider_error_is_transient(error: Any) -> bool:
    """
    Classifies a single provider error object.

    Args:
        error: One entry of the envelope's ``errors`` list. Usually a dict with
               optional ``code`` and ``message`` keys; anything else is
               treated as a permanent error.

    Returns:
        True if the error is the rate-limit code or its message suggests a
        temporary condition.
    """
    if not isinstance(error, dict):
        return False

    code = error.get("code")
    if isinstance(code, int) and not isinstance(code, bool) and code == RATE_LIMIT_ERROR_CODE:
        return True

    message = error.get("message")
    if not isinstance(message, str):
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in _TRANSIENT_MESSAGE_MARKERS)


def provider_errors_are_transient(errors: Iterable[Any]) -> bool:
    """Returns True if any of the provider's error objects is transient."""
    return any(provider_error_is_transient(error) for error in errors)


def is_transient(exc: BaseException) -> bool:
    """
    Classifies an exception raised by an outbound call.

    Args:
        exc: The exception to inspect.

    Returns:
        True for timeouts, transport failures, 429/5xx statuses and transient
        provider errors; False for everything else.
    """
    if isinstance(exc, RequestTimeoutError):
        return True
    if isinstance(exc, NetworkError):
        return status_is_transient(exc.status_code)
    if isinstance(exc, DnsProviderError):
        return provider_errors_are_transient(exc.errors)
    return False
