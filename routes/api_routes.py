"""
routes/api_routes.py

Responsibility: Read-only JSON endpoints exposing process health and the
outcome of recent check cycles.
Does NOT: mutate state, trigger DNS updates, or call Cloudflare.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from dependencies import get_status_repo
from scheduler import JOB_ID
from repositories.status_repository import StatusRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """
    Liveness probe.

    Returns:
        A dict with a "status" key set to "ok".
    """
    return {"status": "ok"}


@router.get("/api/status")
def latest_status(status_repo: StatusRepository = Depends(get_status_repo)) -> dict:
    """
    Returns the outcome of the most recent check cycle.

    Raises:
        HTTPException: 404 if no cycle has completed yet.
    """
    status = status_repo.get_latest()
    if status is None:
        raise HTTPException(status_code=404, detail="No check cycle has completed yet.")
    return status.model_dump(mode="json")


@router.get("/api/status/history")
def status_history(
    limit: int = Query(default=20, ge=1, le=500),
    status_repo: StatusRepository = Depends(get_status_repo),
) -> list[dict]:
    """
    Returns recent check-cycle outcomes, newest first.

    Args:
        limit: Maximum number of rows (1-500).
    """
    return [status.model_dump(mode="json") for status in status_repo.get_recent(limit=limit)]


@router.get("/api/next-check-in")
async def next_check_in(request: Request) -> dict:
    """
    Returns the seconds remaining until the next scheduled check.

    Reads the live next_run_time from APScheduler. ``seconds`` is None when
    the scheduler is not running.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return {"seconds": None}

    job = scheduler.get_job(JOB_ID)
    if job is None or job.next_run_time is None:
        return {"seconds": None}

    delta = job.next_run_time - datetime.now(timezone.utc)
    return {"seconds": max(0, int(delta.total_seconds()))}
