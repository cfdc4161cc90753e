"""
Database configuration and session management.
"""
import os
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from roster_api.core.config import settings


def _engine_options() -> dict:
    """Engine keyword arguments for the configured backend."""
    options = {"echo": os.getenv("SQL_ECHO", "false").lower() == "true"}

    if settings.is_sqlite():
        # SQLite connections are shared with the threadpool FastAPI runs sync code in
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            poolclass=QueuePool,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Verify connections before using
        )

    return options


DATABASE_URL = settings.DATABASE_URL

engine = create_engine(DATABASE_URL, **_engine_options())

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
    ```python
    @router.get("/endpoint")
    def endpoint(db: Session = Depends(get_db)):
        # Use db here
        pass
    ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create any tables that don't exist yet."""
    from roster_api.models.models import Base
    Base.metadata.create_all(bind=engine, checkfirst=True)
