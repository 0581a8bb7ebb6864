# backend/wealthtrack/database.py
"""
Database connection and session management.

Engine selection:
- SQLite (tests, local tinkering): StaticPool so an in-memory database is
  shared by every session of the process
- PostgreSQL: QueuePool sized from DB_POOL_* settings

Sessions are short-lived: one per request (get_db) or one per script run
(scripts/refresh_prices.py). Services commit explicitly.
"""

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from wealthtrack.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # ON DELETE CASCADE of asset_history needs this on SQLite
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Create an engine for the configured (or given) database URL.

    Args:
        database_url: Overrides settings.database_url (tests, scripts)
    """
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        logger.info("Configuring SQLite database")
        sqlite_engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    logger.info(
        f"Configuring PostgreSQL database pool: "
        f"size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s, "
        f"pre_ping={settings.db_pool_pre_ping}"
    )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Yields:
        Session: A SQLAlchemy database session that auto-closes after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health(db_engine: Engine | None = None) -> dict[str, Any]:
    """
    Check database connectivity and, for pooled engines, pool usage.

    Returns:
        dict with "status" ("healthy"/"unhealthy"), the backend name and
        either pool stats or the error message
    """
    target = db_engine or engine
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }

    result: dict[str, Any] = {
        "status": "healthy",
        "database": target.dialect.name,
    }

    pool = target.pool
    if isinstance(pool, QueuePool):
        result["pool"] = {
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }

    return result
