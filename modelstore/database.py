"""
Database engine and session management for the SQL document store.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def get_connect_args(db_url: str) -> dict:
    """
    Get database-specific connection arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Connection arguments dict
    """
    if db_url.startswith("sqlite"):
        # Sessions are opened from executor worker threads
        return {"check_same_thread": False}
    return {}


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``db_url``.

    In-memory SQLite gets a single shared connection so every session sees
    the same database.
    """
    kwargs: dict = {"connect_args": get_connect_args(db_url), "echo": echo}
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    safe_url = make_url(db_url).render_as_string(hide_password=True)
    logger.info(f"Using database: {safe_url}")
    return create_engine(db_url, **kwargs)


def create_session_factory(engine: Engine) -> "sessionmaker[Session]":
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine, drop_existing: Optional[bool] = False) -> None:
    """Create the document table (optionally dropping it first)."""
    if drop_existing:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
