"""
scheduler.py

Responsibility: Sets up the APScheduler AsyncIOScheduler and registers the
DDNS background check job. Wires collaborators for each run and persists
the run status afterwards.
Does NOT: contain DNS business logic or HTTP calls directly; those are
delegated entirely to DnsService and its collaborators.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from config import Settings
from db.database import get_engine
from provider.cloudflare_client import CloudflareClient
from repositories.status_repository import StatusRepository
from services.backup_service import BackupService
from services.dns_service import CycleReport, DnsService
from services.ip_service import IpService
from services.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Job ID used to identify the DDNS check job in APScheduler
JOB_ID = "ddns_check"


def build_dns_service(http_client: httpx.AsyncClient, settings: Settings) -> DnsService:
    """
    Assembles a DnsService for one cycle from the shared HTTP client.

    Nothing built here outlives the cycle, so every run starts from fresh
    provider state.
    """
    retry_policy = RetryPolicy()
    return DnsService(
        dns_provider=CloudflareClient(http_client=http_client, api_token=settings.api_token),
        ip_service=IpService(http_client, sources=settings.ip_sources, retry_policy=retry_policy),
        backup_service=BackupService(settings.backup_dir),
        zone_id=settings.zone_id,
        retry_policy=retry_policy,
    )


async def run_cycle(
    dns_service: DnsService,
    domain_names: Sequence[str],
    session: Session,
) -> CycleReport:
    """
    Runs one check cycle and stores its outcome as a RunStatus row.

    Args:
        dns_service: The assembled reconciler.
        domain_names: FQDNs to reconcile, in configuration order.
        session: DB session used to persist the run status.

    Returns:
        The cycle's report.
    """
    report = await dns_service.run_check_cycle(domain_names)

    if report.success:
        logger.info("Cycle finished: %s", report.message)
    else:
        logger.error("Cycle finished with errors: %s", report.message)

    StatusRepository(session).record(
        success=report.success,
        message=report.message,
        public_ip=report.public_ip,
        updated=len(report.updated),
        unchanged=len(report.unchanged),
        failed=len(report.failures),
    )
    return report


# ---------------------------------------------------------------------------
# Scheduler job
# ---------------------------------------------------------------------------


async def _ddns_check_job(http_client: httpx.AsyncClient, settings: Settings) -> None:
    """
    APScheduler job: runs one DDNS check cycle.

    Opens a fresh DB session for each run. All business logic is delegated
    to DnsService; this function only wires up collaborators.

    Args:
        http_client: The long-lived shared httpx.AsyncClient from app.state.
        settings: The validated application settings.
    """
    logger.debug("DDNS check job triggered.")
    dns_service = build_dns_service(http_client, settings)
    with Session(get_engine()) as session:
        await run_cycle(dns_service, settings.domain_names, session)
    logger.info("Waiting %d minute(s) before next check.", settings.update_interval_minutes)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_scheduler(http_client: httpx.AsyncClient, settings: Settings) -> AsyncIOScheduler:
    """
    Creates and returns a configured AsyncIOScheduler with the DDNS check job.

    The job runs immediately on startup (next_run_time=now) and then every
    UPDATE_INTERVAL minutes.

    Args:
        http_client: The shared httpx.AsyncClient to pass into the job.
        settings: The validated application settings.

    Returns:
        A configured but not yet started AsyncIOScheduler.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _ddns_check_job,
        trigger="interval",
        minutes=settings.update_interval_minutes,
        id=JOB_ID,
        kwargs={"http_client": http_client, "settings": settings},
        # NOTE: next_run_time=now triggers the first check immediately on startup
        # rather than waiting a full interval before the first run.
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,  # A slow cycle must finish before the next one starts
        coalesce=True,
    )
    logger.info(
        "DDNS check job scheduled; interval: %d minute(s), domains: %s.",
        settings.update_interval_minutes,
        ", ".join(settings.domain_names),
    )
    return scheduler
