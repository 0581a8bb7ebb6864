#!/usr/bin/env python3
# backend/init_db.py
"""
Database initialization script.

Creates the tables straight from the models (development / SQLite).
Production databases are managed with Alembic instead.

This script can be run from any directory:
    python backend/init_db.py
    cd backend && python init_db.py
"""
import logging
import sys
from pathlib import Path

# Add the backend directory to Python path so 'wealthtrack' package is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from wealthtrack.database import engine
from wealthtrack.models import Base
from wealthtrack.utils.logging import setup_logging

logger = logging.getLogger("init_db")


def init_db() -> None:
    """Create all database tables defined in models."""
    logger.info(f"Creating database tables on {engine.dialect.name}...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging()
    init_db()
