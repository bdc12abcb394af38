"""Database repositories."""

from app.db.repositories.health_metric import HealthMetricRepository

__all__ = [
    "HealthMetricRepository",
]
