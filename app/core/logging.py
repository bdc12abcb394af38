"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this configures the
root handler once at application start-up.
"""

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger from ``LOG_LEVEL`` (idempotent)."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)

    # SQL echo is driven by the engine's ``echo`` flag, keep the pool quiet
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
