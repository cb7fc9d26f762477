"""
db/database.py

Responsibility: Creates the SQLite engine and session factory, and exposes
init_db() for startup table initialisation.
Does NOT: define table models, run queries, or contain business logic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

import db.models  # noqa: F401  registers table metadata before create_all

logger = logging.getLogger(__name__)

# NOTE: Mount the directory holding DB_PATH as a volume so run history
# survives container restarts.
DEFAULT_DB_PATH = "data/flaresync.db"

# Built by init_db() once settings (including any .env file) are loaded
_engine: Engine | None = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_db(db_path: str = DEFAULT_DB_PATH) -> Engine:
    """
    Creates the engine for ``db_path`` and any tables that don't exist yet.

    Called once from the FastAPI lifespan function in app.py.

    Args:
        db_path: SQLite file path, normally Settings.db_path.

    Returns:
        The application engine.
    """
    global _engine

    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    # check_same_thread=False is required for SQLite + FastAPI's threadpool.
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        echo=False,
    )
    SQLModel.metadata.create_all(engine)

    if _engine is not None:
        _engine.dispose()
    _engine = engine
    logger.info("Database initialised at %s", db_path)
    return engine


def get_engine() -> Engine:
    """
    Returns the engine built by init_db().

    Raises:
        RuntimeError: If init_db() has not been called.
    """
    if _engine is None:
        raise RuntimeError("Database is not initialised; call init_db() first")
    return _engine


def get_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLModel Session for the current request.

    Usage in route handlers:
        session: Session = Depends(get_session)

    Yields:
        A SQLModel Session bound to the application engine.
    """
    with Session(get_engine()) as session:
        yield session
