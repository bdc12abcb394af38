"""
Database initialization.

Creates all tables. Production schemas are managed by Alembic; this is for
local development databases.
"""

import logging

from sqlmodel import SQLModel

from app.db.session import engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """
    Initialize database schema.

    - Creates all SQLModel tables (health_metrics and its indexes)
    """

    # Import all models so SQLModel.metadata has them
    from app.db import base  # noqa: F401

    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    from app.core.logging import configure_logging

    configure_logging()
    init_db()
