"""Database engine and session management.

The process entry point owns the connection lifecycle: it calls init_engine()
on startup and dispose_engine() on shutdown. Services never create engines or
sessions themselves; they receive a Session from get_db().
"""

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None

# Session factory, bound to the engine by init_engine()
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)


def init_engine(database_url: Optional[str] = None) -> Engine:
    """Create the process-wide engine and bind the session factory to it.

    Args:
        database_url: Override for settings.DATABASE_URL

    Returns:
        Engine: The shared engine (created once per process)
    """
    global _engine
    if _engine is not None:
        return _engine

    url = database_url or get_settings().DATABASE_URL

    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,
    }
    # Pool settings only apply to PostgreSQL (not SQLite)
    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    _engine = create_engine(url, **engine_kwargs)
    SessionLocal.configure(bind=_engine)

    logger.info(f"Database engine initialised: dialect={_engine.dialect.name}")
    return _engine


def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine
    if _engine is None:
        return
    _engine.dispose()
    _engine = None
    logger.info("Database engine disposed")


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/registrations/{registration_id}")
        def read(registration_id: UUID, db: Session = Depends(get_db)):
            ...
    """
    init_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
