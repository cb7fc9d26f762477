"""
provider/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here; no other file may call the
Cloudflare API directly.
Does NOT: retry, back up records, read configuration, or decide whether an
update is needed.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

import httpx

from exceptions import DnsProviderError, ResponseParseError
from provider.dns_provider import ApiEnvelope, DnsRecord
from services.retry import translate_http_errors

logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare DNS REST API (v4).

    All outbound requests go through the injected httpx.AsyncClient, making
    this class fully testable without real network calls (use respx.mock).
    Every method makes a single attempt; DnsService wraps the calls in its
    RetryPolicy.

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str,
        base_url: str = CLOUDFLARE_API_BASE,
    ) -> None:
        """
        Initialises the client with an HTTP client and a Cloudflare API token.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: A Cloudflare API token with DNS edit permission on the zone.
            base_url: API root; overridable for tests.
        """
        self._client = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def list_records(self, zone_id: str, record_name: str) -> list[DnsRecord]:
        """
        Fetches the A-records in the zone whose name exactly matches ``record_name``.

        Args:
            zone_id: The Cloudflare zone ID.
            record_name: The fully-qualified DNS name to look up.

        Returns:
            The matching records in API order, possibly empty.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            DnsProviderError: If the API returns success=false.
            ResponseParseError: If the body or result has an unexpected shape.
        """
        url = f"{self._base_url}/zones/{zone_id}/dns_records"
        params = {"type": "A", "name": record_name}

        logger.debug("GET %s params=%s", url, params)
        envelope = await self._request("GET", url, params=params)

        if not isinstance(envelope.result, list):
            raise ResponseParseError(
                f"Expected a list of records for {record_name}, got {type(envelope.result).__name__}"
            )
        return [DnsRecord.from_api(raw) for raw in envelope.result]

    async def update_record(self, zone_id: str, record: DnsRecord, new_ip: str) -> DnsRecord:
        """
        Overwrites an existing A-record with a new IP address.

        The full record state is sent so the call can be repeated safely.

        Args:
            zone_id: The Cloudflare zone ID.
            record: The existing record, as fetched this cycle.
            new_ip: The new IPv4 address to write.

        Returns:
            The updated record as confirmed by Cloudflare. If the write
            succeeded but the echoed record is unreadable, the submitted
            state is returned instead.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            DnsProviderError: If the API returns success=false.
            ResponseParseError: If the body has an unexpected shape.
        """
        url = f"{self._base_url}/zones/{zone_id}/dns_records/{record.id}"

        logger.debug("PUT %s content=%s", url, new_ip)
        envelope = await self._request("PUT", url, json=build_update_payload(record, new_ip))

        try:
            return DnsRecord.from_api(envelope.result)
        except ResponseParseError as exc:
            # The write already happened; report what was sent.
            logger.warning("Record %s updated but the response was unreadable: %s", record.name, exc)
            return replace(record, content=new_ip)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiEnvelope[Any]:
        """
        Sends one authenticated request and unwraps the Cloudflare envelope.

        Returns:
            The envelope, guaranteed to have success=True.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            DnsProviderError: If the envelope reports success=false.
            ResponseParseError: If the body is not JSON or not an envelope.
        """
        with translate_http_errors(f"{method} {url}"):
            response = await self._client.request(
                method, url, headers=self._headers, params=params, json=json
            )
            response.raise_for_status()

        try:
            body = response.json()
        except ValueError as exc:
            raise ResponseParseError(
                f"Cloudflare returned a non-JSON body for {method} {url}"
            ) from exc

        envelope = ApiEnvelope.from_json(body)

        # NOTE: Cloudflare wraps all responses in {"success": bool, "errors": [...], "result": ...}
        if not envelope.success:
            raise DnsProviderError(
                f"Cloudflare API returned success=false for {method} {url}. "
                f"Errors: {envelope.errors}",
                errors=envelope.errors,
            )

        return envelope


def build_update_payload(record: DnsRecord, new_ip: str) -> dict[str, Any]:
    """
    Builds the PUT body for an update, echoing ttl and proxied unchanged.

    Fields the provider did not report (None) are left out so Cloudflare
    applies its own defaults rather than receiving an explicit null.
    """
    payload: dict[str, Any] = {
        "type": "A",
        "name": record.name,
        "content": new_ip,
    }
    if record.ttl is not None:
        payload["ttl"] = record.ttl
    if record.proxied is not None:
        payload["proxied"] = record.proxied
    return payload
