"""
Database session management.

Provides SQLModel engine and session creation.
"""

from sqlmodel import create_engine, Session
from typing import Generator

from app.core.config import settings

# Create database engine
DATABASE_URL: str = settings.DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    pool_pre_ping=True,   # Verify connections before using
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
    pool_timeout=settings.DATABASE_POOL_TIMEOUT,
    connect_args={"options": f"-c statement_timeout={settings.DATABASE_STATEMENT_TIMEOUT_MS}"},
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    The session checks a pooled connection out on first use and returns it
    when the transaction ends or the session closes, on every exit path.

    Yields:
        SQLModel Session instance

    Example:
        @router.get("/summary/{user_id}")
        def summary(user_id: str, db: Session = Depends(get_db)):
            return HealthService(db).daily_summary(user_id, "2026-02-17")
    """
    with Session(engine) as session:
        yield session
