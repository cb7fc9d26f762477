"""
provider/dns_provider.py

Responsibility: Defines the DnsRecord and ApiEnvelope value objects and the
DNSProvider Protocol the reconciler depends on.
Does NOT: make HTTP calls, retry, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from exceptions import ResponseParseError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsRecord:
    """
    A single DNS A-record as stored by the provider.

    Only ``content`` is ever changed by FlareSync; ``ttl`` and ``proxied``
    are echoed back verbatim on update. Either may be None when the provider
    omitted it, in which case the update payload omits it too.
    """

    # Provider-assigned, stable identifier
    id: str

    # Fully-qualified DNS name, e.g. "home.example.com"
    name: str

    # IPv4 address currently stored in the record
    content: str

    # Always "A" for this application; serialised as "type"
    record_type: str = "A"

    # Whether the record is proxied through the provider's CDN
    proxied: bool | None = None

    # TTL in seconds; 1 means "automatic" on Cloudflare
    ttl: int | None = None

    @classmethod
    def from_api(cls, raw: Any) -> DnsRecord:
        """
        Builds a DnsRecord from a raw Cloudflare record object.

        Args:
            raw: One record dict from an API response or a backup file.

        Returns:
            The parsed DnsRecord.

        Raises:
            ResponseParseError: If ``raw`` is not a dict or lacks id/name/content.
        """
        if not isinstance(raw, dict):
            raise ResponseParseError(f"Expected a DNS record object, got {type(raw).__name__}")
        try:
            return cls(
                id=str(raw["id"]),
                name=str(raw["name"]),
                content=str(raw["content"]),
                record_type=str(raw.get("type", "A")),
                proxied=raw.get("proxied"),
                ttl=raw.get("ttl"),
            )
        except KeyError as exc:
            raise ResponseParseError(f"DNS record is missing field {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Returns the record in the provider's wire shape."""
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "type": self.record_type,
            "proxied": self.proxied,
            "ttl": self.ttl,
        }


@dataclass(frozen=True)
class ApiEnvelope(Generic[T]):
    """
    The wrapper Cloudflare puts around every response.

    When ``success`` is False, ``result`` must not be used and ``errors``
    must be classified before any retry decision.
    """

    success: bool
    result: T | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    messages: list[Any] = field(default_factory=list)

    @classmethod
    def from_json(cls, body: Any) -> ApiEnvelope[Any]:
        """
        Parses a decoded JSON body into an envelope without interpreting ``result``.

        Raises:
            ResponseParseError: If the body is not a JSON object.
        """
        if not isinstance(body, dict):
            raise ResponseParseError(f"Expected a JSON object, got {type(body).__name__}")
        errors = body.get("errors") or []
        messages = body.get("messages") or []
        return cls(
            success=bool(body.get("success", False)),
            result=body.get("result"),
            errors=[e if isinstance(e, dict) else {"message": str(e)} for e in errors],
            messages=list(messages),
        )


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    What DnsService needs from a DNS API. Implemented by CloudflareClient.

    Each method makes exactly one attempt; retrying is the caller's job.
    """

    async def list_records(self, zone_id: str, record_name: str) -> list[DnsRecord]:
        """
        Returns every A-record in the zone whose name equals ``record_name``.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            DnsProviderError: If the API reports success=false.
            ResponseParseError: If the body is not a valid envelope.
        """
        ...

    async def update_record(self, zone_id: str, record: DnsRecord, new_ip: str) -> DnsRecord:
        """
        Replaces ``record``'s content with ``new_ip``, keeping ttl and proxied.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            DnsProviderError: If the API reports success=false.
            ResponseParseError: If the body is not a valid envelope.
        """
        ...
