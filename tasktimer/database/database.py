"""Database connection and session management for tasktimer.

This module supports both:
- Local SQLite (default for dev)
- PostgreSQL via `DATABASE_URL`

There is no module-level engine: the process entry point constructs a
`Database` handle and owns its connect/disconnect lifecycle.
"""

import logging
import os
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

load_dotenv()

logger = logging.getLogger(__name__)

# Database URL - SQLite by default (local dev)
DEFAULT_DATABASE_URL = "sqlite:///./tasktimer.db"

# Base class for declarative models
Base = declarative_base()


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_store_timeout() -> int:
    """Bounded wait (seconds) for any single store call."""
    return int(os.getenv("STORE_TIMEOUT_SEC", "10"))


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # Shared across FastAPI worker threads; `timeout` bounds lock waits.
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": get_store_timeout(),
        }
        return engine_kwargs

    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", str(get_store_timeout())))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, **get_engine_kwargs(database_url))
    if _is_sqlite_url(database_url):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL mode so readers are not blocked during writes."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class Database:
    """Explicitly constructed handle to the backing store."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        self.database_url = database_url or get_database_url()
        self.engine: Optional[Engine] = engine
        self._session_factory: Optional[sessionmaker] = None
        if engine is not None:
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def is_connected(self) -> bool:
        return self._session_factory is not None

    def connect(self) -> None:
        """Create the engine and session factory (idempotent)."""
        if self.is_connected:
            return
        self.engine = build_engine(self.database_url)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Connected to database ({self.engine.url.get_backend_name()})")

    def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Disconnected from database")
        self.engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._session_factory()

    def init_schema(self) -> None:
        """Initialize database schema.

        - SQLite (default dev): use `create_all()`.
        - PostgreSQL: prefer Alembic migrations. Enable by setting
          `RUN_MIGRATIONS=true` in the environment.
        """
        run_migrations = os.getenv("RUN_MIGRATIONS", "False").lower() == "true"
        if run_migrations and not _is_sqlite_url(self.database_url):
            from alembic import command
            from alembic.config import Config

            alembic_cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
            alembic_cfg.set_main_option("sqlalchemy.url", self.database_url)
            command.upgrade(alembic_cfg, "head")
            return

        # Register tables on Base.metadata before create_all.
        from tasktimer.database import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)


def iter_session(database: Database) -> Iterator[Session]:
    """Yield a session and close it afterwards (FastAPI dependency helper)."""
    db = database.session()
    try:
        yield db
    finally:
        db.close()
