"""
repositories/status_repository.py

Responsibility: Provides low-level read/write access to the RunStatus table
in SQLite via SQLModel.
Does NOT: run check cycles, fetch IPs, or format API responses.
"""

from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from db.models import RunStatus

logger = logging.getLogger(__name__)


class StatusRepository:
    """
    Persists the outcome of each check cycle.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        """
        Initialises the repository with an active DB session.

        Args:
            session: An open SQLModel Session.
        """
        self._session = session

    # ---------------------------------------------------------------------------
    # Write operations
    # ---------------------------------------------------------------------------

    def record(
        self,
        success: bool,
        message: str,
        public_ip: str | None = None,
        updated: int = 0,
        unchanged: int = 0,
        failed: int = 0,
    ) -> RunStatus:
        """
        Inserts a RunStatus row for a finished cycle.

        Args:
            success: Whether the cycle completed without any failure.
            message: Human-readable summary.
            public_ip: The discovered IP, if discovery succeeded.
            updated: Number of domains whose record was changed.
            unchanged: Number of domains already correct or with no record.
            failed: Number of domains that raised an error.

        Returns:
            The persisted RunStatus instance.
        """
        status = RunStatus(
            success=success,
            message=message,
            public_ip=public_ip or "",
            updated=updated,
            unchanged=unchanged,
            failed=failed,
        )
        self._session.add(status)
        self._session.commit()
        self._session.refresh(status)
        logger.debug("Recorded run status #%s: %s", status.id, message)
        return status

    # ---------------------------------------------------------------------------
    # Read operations
    # ---------------------------------------------------------------------------

    def get_latest(self) -> RunStatus | None:
        """Returns the most recent RunStatus, or None before the first cycle."""
        statement = select(RunStatus).order_by(col(RunStatus.id).desc()).limit(1)
        return self._session.exec(statement).first()

    def get_recent(self, limit: int = 20) -> list[RunStatus]:
        """
        Returns up to ``limit`` RunStatus rows, newest first.

        Args:
            limit: Maximum number of rows to return.

        Returns:
            A list of RunStatus instances, possibly empty.
        """
        statement = select(RunStatus).order_by(col(RunStatus.id).desc()).limit(limit)
        return list(self._session.exec(statement).all())
