"""
Database utility functions for consistent session management across the application.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from insights.db.base import Base
from insights.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Get a database session with proper cleanup using context manager.

    Commits on success, rolls back and re-raises on any exception.

    Usage:
        with get_db_session() as db:
            rows = db.query(Model).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()


def create_tables() -> None:
    """Create any missing tables for the registered models."""
    # Import models so they register on Base.metadata
    from insights import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"[Database] Tables ready: {sorted(Base.metadata.tables.keys())}")
