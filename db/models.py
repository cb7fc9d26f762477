"""
db/models.py

Responsibility: Defines all SQLModel table models used by the application.
Does NOT: contain business logic, repositories, or session management.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# RunStatus: one row per completed check cycle
# ---------------------------------------------------------------------------


class RunStatus(SQLModel, table=True):
    """
    Records the outcome of a single DDNS check cycle.

    Written by StatusRepository after every cycle, whether it succeeded,
    made no change, or failed. Served by the /api/status endpoints.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    # When the cycle finished (naive UTC)
    timestamp: datetime = Field(default_factory=_utcnow, index=True)

    # False if IP discovery failed or any domain failed
    success: bool = Field(default=True)

    # "IP updated", "No update needed", or "Error: ..."
    message: str = Field(default="")

    # Quorum-agreed public IP; empty when discovery failed
    public_ip: str = Field(default="")

    # Per-cycle domain counts
    updated: int = Field(default=0)
    unchanged: int = Field(default=0)
    failed: int = Field(default=0)
