"""
services/ip_service.py

Responsibility: Determines the host's current public IPv4 address by asking
several independent echo services at once and accepting an answer only when
a majority of them agree.
Does NOT: parse DNS records, interact with Cloudflare, or read config files.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from collections import Counter
from collections.abc import Sequence
from ipaddress import IPv4Address

import httpx

from exceptions import IpFetchError, QuorumNotReachedError, RequestTimeoutError
from services.retry import RetryPolicy, translate_http_errors

logger = logging.getLogger(__name__)

# NOTE: Each of these returns the caller's public IPv4 as plain text.
DEFAULT_IP_SOURCES: tuple[str, ...] = (
    "https://api.ipify.org",
    "https://checkip.amazonaws.com",
    "https://ipv4.icanhazip.com",
)

DEFAULT_SOURCE_TIMEOUT = 10.0


def required_quorum(source_count: int) -> int:
    """Strict majority of the configured sources, and never fewer than two."""
    return max(2, source_count // 2 + 1)


def resolve_quorum(
    results: Sequence[IPv4Address | BaseException],
    quorum: int,
) -> IPv4Address:
    """
    Picks the address reported by at least ``quorum`` sources.

    Args:
        results: One entry per source, either its address or its failure.
        quorum: Minimum number of sources that must agree.

    Returns:
        The agreed address.

    Raises:
        QuorumNotReachedError: If no single address reaches the quorum. A
            three-way split and a total failure are treated alike; there is
            no tie-breaking.
    """
    counts = Counter(r for r in results if isinstance(r, IPv4Address))
    failures = sum(1 for r in results if not isinstance(r, IPv4Address))

    if counts:
        address, votes = counts.most_common(1)[0]
        if votes >= quorum:
            return address

    raise QuorumNotReachedError(
        f"Failed to determine public IP by quorum (need {quorum} of {len(results)} "
        f"sources to agree; got {dict((str(a), n) for a, n in counts.items())}, "
        f"{failures} source(s) failed)"
    )


class IpService:
    """
    Fetches the host machine's current public IPv4 address by quorum.

    Uses an injected httpx.AsyncClient so the service is fully testable
    without real network calls (use respx.mock in tests).

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
        - RetryPolicy: applied to each source independently
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sources: Sequence[str] = DEFAULT_IP_SOURCES,
        retry_policy: RetryPolicy | None = None,
        timeout: float = DEFAULT_SOURCE_TIMEOUT,
    ) -> None:
        """
        Initialises the service.

        Args:
            http_client: A long-lived httpx.AsyncClient instance created
                         during application startup.
            sources: URLs of plain-text IP echo services.
            retry_policy: Backoff applied per source; defaults to 3 retries.
            timeout: Per-request deadline in seconds.
        """
        self._client = http_client
        self._sources = tuple(sources)
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout

    @property
    def quorum(self) -> int:
        return required_quorum(len(self._sources))

    async def get_public_ip(self) -> IPv4Address:
        """
        Queries every source concurrently and returns the majority address.

        All sources are awaited before resolution; one source failing or
        disagreeing does not affect the others.

        Returns:
            The public IPv4 address agreed on by the quorum.

        Raises:
            QuorumNotReachedError: If not enough sources agree.
        """
        results = await asyncio.gather(
            *(self._fetch_with_retry(url) for url in self._sources),
            return_exceptions=True,
        )

        for url, result in zip(self._sources, results):
            if isinstance(result, BaseException):
                logger.warning("IP source %s failed: %s", url, result)
            else:
                logger.debug("IP source %s reported %s", url, result)

        address = resolve_quorum(results, self.quorum)
        logger.info("Current public IP: %s", address)
        return address

    async def fetch_from_source(self, url: str) -> IPv4Address:
        """
        Makes one request to a single echo service.

        Args:
            url: The echo service URL.

        Returns:
            The address in the response body.

        Raises:
            NetworkError: On transport failure, timeout, or a non-2xx status.
            IpFetchError: If the trimmed body is not a dotted-quad IPv4 address.
        """
        # httpx applies its timeout per phase; wait_for bounds the whole call.
        try:
            with translate_http_errors(f"GET {url}"):
                response = await asyncio.wait_for(
                    self._client.get(url, timeout=self._timeout), timeout=self._timeout
                )
                response.raise_for_status()
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(f"GET {url} took longer than {self._timeout}s") from exc
        return parse_ipv4(response.text, url)

    async def _fetch_with_retry(self, url: str) -> IPv4Address:
        return await self._retry.run(
            lambda: self.fetch_from_source(url),
            description=f"IP lookup via {url}",
        )


def parse_ipv4(body: str, source: str = "response") -> IPv4Address:
    """
    Parses a plain-text echo body as an IPv4 address.

    Raises:
        IpFetchError: For empty bodies, IPv6, hostnames, or anything else.
    """
    text = body.strip()
    try:
        return IPv4Address(text)
    except ipaddress.AddressValueError as exc:
        raise IpFetchError(f"Failed to parse IPv4 address from {source}: {text!r}") from exc
