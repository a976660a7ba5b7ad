from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

# SQLite is handy for local runs; its connections must be shareable across
# FastAPI's threadpool workers.
connect_args = (
    {"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db():
    """
    FastAPI dependency.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Session:
    """
    Context manager for scripts and the API write paths.
    Commits on success, rolls back and re-raises on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        logger.warning("Rolling back session after error")
        db.rollback()
        raise
    finally:
        db.close()
