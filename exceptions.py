"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling. Whether an error
is worth retrying is decided by services/error_classifier.py, not here.
"""

from __future__ import annotations

from typing import Any


class FlareSyncError(Exception):
    """
    Base class for every error raised by FlareSync.

    The scheduler catches this type per domain and per cycle so that a
    runtime failure is logged instead of stopping the process.
    """


class ConfigError(FlareSyncError):
    """
    Raised by Settings.from_env() when a required setting is missing or invalid.

    Fatal at startup; never retried.
    """


class BackupError(FlareSyncError):
    """
    Raised by BackupService when the backup directory cannot be created or
    the snapshot file cannot be written.

    Aborts the reconciliation of the affected domain only.
    """


class NetworkError(FlareSyncError):
    """
    Raised when an outbound HTTP call fails at the transport level or
    returns an error status.

    Attributes:
        status_code: The HTTP status, or None when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HttpStatusError(NetworkError):
    """Raised when the remote end answered with a non-2xx HTTP status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code=status_code)


class RequestTimeoutError(NetworkError):
    """Raised when sending a request or reading its body exceeds the deadline."""


class ResponseParseError(FlareSyncError):
    """Raised when a response body cannot be decoded into the expected shape."""


class DnsProviderError(FlareSyncError):
    """
    Raised by CloudflareClient when the API envelope reports success=false.

    Attributes:
        errors: The provider's error objects, in the order they were returned.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class IpFetchError(FlareSyncError):
    """
    Raised by IpService when a source returns a body that is not a valid
    IPv4 address, or when discovery as a whole fails.
    """


class QuorumNotReachedError(IpFetchError):
    """
    Raised when fewer than the required number of IP sources agree on one
    address. Covers both the all-distinct split and the all-failed case.
    """
