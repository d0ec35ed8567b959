"""
Database connection and session management.
Supports PostgreSQL (pooled) and SQLite backends.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator
import logging
import os
import time

from trekdesk.core.config import settings
from trekdesk.db.models import Base

logger = logging.getLogger(__name__)

# Track database availability to avoid repeated slow connection attempts
_db_available = True
_db_last_check = 0.0
_DB_RETRY_INTERVAL = 30  # Re-check every 30 seconds when DB is down

_is_sqlite = settings.database_url.startswith("sqlite")

if _is_sqlite:
    # Relative paths resolve against the project root
    db_path = settings.database_url.replace("sqlite:///", "")
    if db_path.startswith("./"):
        db_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), db_path[2:])
        db_url = f"sqlite:///{db_path}"
    else:
        db_url = settings.database_url

    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10, "application_name": "trekdesk"},
    )

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session | None, None, None]:
    """
    Dependency injection for database session.
    Yields None if the database is unavailable; routes answer 503 in that case.
    Unavailability is cached for _DB_RETRY_INTERVAL seconds.
    """
    global _db_available, _db_last_check

    if not _db_available:
        now = time.time()
        if now - _db_last_check < _DB_RETRY_INTERVAL:
            yield None
            return
        _db_last_check = now

    try:
        db = SessionLocal()
    except Exception as e:
        logger.warning(f"Database unavailable: {e}")
        _db_available = False
        _db_last_check = time.time()
        yield None
        return

    try:
        _db_available = True
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables at startup."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema initialized")
