"""Database setup and session management"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from contextlib import contextmanager
from typing import Dict, Any
import os
import logging

logger = logging.getLogger(__name__)

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/gatekeeper.db")

# Create engine
# For SQLite, we need to enable check_same_thread=False to allow FastAPI to use it
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency for getting database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_middleware_db():
    """
    Context manager for database sessions used outside of request handlers.

    Used by the CLI, which has no FastAPI dependency injection:

        with get_middleware_db() as db:
            controller = GateController(db, context)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_engine():
    """Get the database engine instance"""
    return engine


def get_pool_status() -> Dict[str, Any]:
    """
    Get connection pool statistics for the health endpoint.

    Note:
        For SQLite, pool statistics are limited as it uses
        a NullPool or StaticPool depending on the URL.
    """
    pool = engine.pool

    try:
        pool_size = pool.size if isinstance(pool.size, int) else pool.size()
        checked_out = pool.checkedout() if callable(pool.checkedout) else getattr(pool, "checkedout", 0)

        return {
            "pool_size": pool_size,
            "checked_out": checked_out,
            "overflow": pool.overflow() if hasattr(pool, "overflow") and callable(pool.overflow) else 0,
            "checked_in": pool_size - checked_out,
            "pool_class": pool.__class__.__name__,
            "database_url": DATABASE_URL.split("://")[0] + "://***",  # Hide credentials
        }
    except (AttributeError, TypeError) as e:
        # Some pool types (NullPool, StaticPool) don't have all methods
        logger.debug(f"Pool statistics not fully available: {e}")
        return {
            "pool_class": pool.__class__.__name__,
            "database_url": DATABASE_URL.split("://")[0] + "://***",
            "note": "Full pool statistics not available for this pool type"
        }


def init_db():
    """Initialize database - create all tables"""
    # Models must be imported so their tables are registered on Base
    from gatekeeper import models  # noqa: F401

    if DATABASE_URL.startswith("sqlite:///./"):
        os.makedirs(os.path.dirname(DATABASE_URL[len("sqlite:///"):]), exist_ok=True)

    Base.metadata.create_all(bind=engine)
