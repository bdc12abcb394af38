"""Business logic services."""

from app.services.health_service import HealthService

__all__ = [
    "HealthService",
]
