"""
services/dns_service.py

Responsibility: Orchestrates the DDNS update cycle: discovers the public IP
once, then compares each configured record against it and updates the ones
that differ, backing each up first.
Does NOT: make HTTP calls directly, read configuration, or persist run status.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from ipaddress import IPv4Address

from exceptions import FlareSyncError
from provider.dns_provider import DnsRecord, DNSProvider
from services.backup_service import BackupService
from services.ip_service import IpService
from services.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """
    Outcome of one run_check_cycle() call.

    ``error`` is set only when the cycle could not start (IP discovery
    failed); per-domain failures are listed in ``failures`` instead.
    """

    public_ip: str | None = None
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and not self.failures

    @property
    def message(self) -> str:
        """Short human summary, as persisted in the run status."""
        if self.error is not None:
            return f"Error: {self.error}"
        if self.failures:
            details = "; ".join(f"{name}: {reason}" for name, reason in self.failures.items())
            return f"Error: {len(self.failures)} domain(s) failed ({details})"
        if self.updated:
            return "IP updated"
        return "No update needed"


class DnsService:
    """
    Reconciles configured A-records against the host's public IP.

    Every provider call goes through the shared RetryPolicy. Domains are
    processed one after another in configuration order so provider rate
    limits stay predictable and logs read in order.

    Collaborators:
        - DNSProvider: satisfied by CloudflareClient
        - IpService: provides the quorum-agreed public IP
        - BackupService: snapshots a record before it is changed
        - RetryPolicy: retries transient provider failures
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        ip_service: IpService,
        backup_service: BackupService,
        zone_id: str,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """
        Initialises the service with all required collaborators.

        Args:
            dns_provider: Any DNSProvider implementation (e.g. CloudflareClient).
            ip_service: Provides the current public IP of the host machine.
            backup_service: Writes pre-update snapshots.
            zone_id: The provider zone every configured domain belongs to.
            retry_policy: Backoff for provider calls; defaults to 3 retries.
        """
        self._provider = dns_provider
        self._ip_service = ip_service
        self._backup = backup_service
        self._zone_id = zone_id
        self._retry = retry_policy or RetryPolicy()

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def run_check_cycle(self, domain_names: Sequence[str]) -> CycleReport:
        """
        Runs one full cycle: IP discovery followed by per-domain reconciliation.

        If the IP cannot be determined no domain is touched. A failure on one
        domain is logged and the remaining domains are still attempted.

        Args:
            domain_names: FQDNs to reconcile, in order.

        Returns:
            A CycleReport describing what happened.
        """
        report = CycleReport()

        try:
            current_ip = await self._ip_service.get_public_ip()
        except FlareSyncError as exc:
            logger.error("IP discovery failed; skipping this cycle: %s", exc)
            report.error = str(exc)
            return report

        report.public_ip = str(current_ip)

        for domain_name in domain_names:
            try:
                if await self.check_and_update(domain_name, current_ip):
                    report.updated.append(domain_name)
                else:
                    report.unchanged.append(domain_name)
            except FlareSyncError as exc:
                logger.error("Failed to check or update %s: %s", domain_name, exc)
                report.failures[domain_name] = str(exc)

        logger.info(
            "Cycle complete for %s: %d updated, %d unchanged, %d failed.",
            report.public_ip,
            len(report.updated),
            len(report.unchanged),
            len(report.failures),
        )
        return report

    async def check_and_update(self, domain_name: str, discovered_ip: IPv4Address) -> bool:
        """
        Brings one domain's A-record in line with ``discovered_ip``.

        Args:
            domain_name: The FQDN to reconcile.
            discovered_ip: The quorum-agreed public address.

        Returns:
            True if the record was updated; False if it already matched or no
            record exists for the name.

        Raises:
            BackupError: If the snapshot could not be written. The record is
                         left untouched.
            NetworkError, DnsProviderError, ResponseParseError: If a provider
                call failed permanently or ran out of retries.
        """
        logger.info("Checking DNS for domain: %s", domain_name)
        new_ip = str(discovered_ip)

        records = await self._retry.run(
            lambda: self._provider.list_records(self._zone_id, domain_name),
            description=f"Lookup of {domain_name}",
        )
        if not records:
            logger.warning("No matching DNS record found for %s.", domain_name)
            return False

        record = records[0]
        logger.info("Current Cloudflare DNS record IP for %s: %s", domain_name, record.content)

        if record.content == new_ip:
            logger.info("IP for %s hasn't changed. No update needed.", domain_name)
            return False

        logger.info("IP for %s changed %s -> %s. Updating DNS record...", domain_name, record.content, new_ip)
        self._backup.backup(record)

        updated = await self._update(record, new_ip)
        logger.info("DNS record for %s updated successfully to %s.", updated.name, updated.content)
        return True

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _update(self, record: DnsRecord, new_ip: str) -> DnsRecord:
        return await self._retry.run(
            lambda: self._provider.update_record(self._zone_id, record, new_ip),
            description=f"Update of {record.name}",
        )
