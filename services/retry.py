"""
services/retry.py

Responsibility: Runs a fallible async network operation and retries transient
failures with capped exponential backoff. Also maps httpx failures onto the
application's error taxonomy so every caller classifies them the same way.
Does NOT: know which endpoint it is calling or what the operation returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

from exceptions import HttpStatusError, NetworkError, RequestTimeoutError
from services.error_classifier import is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 60.0


@contextmanager
def translate_http_errors(description: str) -> Iterator[None]:
    """
    Re-raises httpx exceptions as FlareSync network errors.

    Args:
        description: Short label for the call, used in error messages,
                     e.g. "GET https://api.ipify.org".

    Raises:
        RequestTimeoutError: On any httpx timeout (connect, write, read, pool).
        HttpStatusError: When raise_for_status() rejected the response.
        NetworkError: On any other transport-level failure.
    """
    try:
        yield
    except httpx.TimeoutException as exc:
        raise RequestTimeoutError(f"Timed out during {description}: {exc}") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise HttpStatusError(
            f"{description} returned HTTP {status}: {exc.response.text[:200]}",
            status_code=status,
        ) from exc
    except httpx.RequestError as exc:
        raise NetworkError(f"Network error during {description}: {exc}") from exc


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry ceiling and backoff schedule shared by every outbound call.

    The operation passed to run() must be idempotent; GET lookups and
    full-state PUT updates both are.

    Attributes:
        max_retries: Retries allowed after the first attempt.
        initial_delay: Seconds to wait before the first retry.
        max_delay: Upper bound on any single wait.
        classifier: Returns True if an exception is worth retrying.
        sleep: Awaitable sleep; replaced in tests so nothing actually waits.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    classifier: Callable[[BaseException], bool] = is_transient
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def delays(self) -> Iterator[float]:
        """Yields the wait before each retry: 1, 2, 4, ... capped at max_delay."""
        delay = self.initial_delay
        for _ in range(self.max_retries):
            yield min(delay, self.max_delay)
            delay = min(delay * 2, self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """
        Awaits operation(), retrying transient failures.

        Args:
            operation: Zero-argument callable returning a fresh awaitable on
                       every call.
            description: Label used in retry log lines.

        Returns:
            Whatever the operation returns on its first successful attempt.

        Raises:
            Exception: The operation's own exception, unchanged, once it is
                       classified permanent or the retry budget is spent.
        """
        delays = self.delays()
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not self.classifier(exc):
                    raise
                wait = next(delays, None)
                if wait is None:
                    logger.error(
                        "%s failed after %d attempt(s): %s", description, attempt, exc
                    )
                    raise
                logger.warning(
                    "%s failed (attempt %d/%d): %s. Retrying in %.0fs...",
                    description,
                    attempt,
                    self.max_retries + 1,
                    exc,
                    wait,
                )
                await self.sleep(wait)
                attempt += 1
