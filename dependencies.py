"""
dependencies.py

Responsibility: Declares the FastAPI Depends() provider functions used by
the route handlers.
Does NOT: contain business logic, HTTP handlers, or DB schema definitions.
"""

from __future__ import annotations

from fastapi import Depends
from sqlmodel import Session

from db.database import get_session
from repositories.status_repository import StatusRepository


def get_status_repo(session: Session = Depends(get_session)) -> StatusRepository:
    """
    Provides a StatusRepository for the current request's DB session.

    Args:
        session: The DB session injected by get_session.

    Returns:
        A StatusRepository instance.
    """
    return StatusRepository(session)
