"""Database connection helpers and initialization."""

import logging
import os
import sqlite3
from contextlib import contextmanager

from tasktrack.core.config import settings

logger = logging.getLogger(__name__)


def get_db_path() -> str:
    """Extract the file path from the DATABASE_URL (strip "sqlite:///")."""
    return settings.DATABASE_URL.replace("sqlite:///", "")


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection with row factory."""
    db_path = get_db_path()
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db():
    """Context manager that yields a database connection and auto-commits/rolls back."""
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        logger.warning("Database transaction rolled back")
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    """Initialize the database by creating all tables."""
    logger.info("Initializing database schema at %s", get_db_path())
    from tasktrack.db import schema

    schema.create_tables()
