"""SQLModel database models."""

from app.models.health_metric import HealthMetric

__all__ = [
    "HealthMetric",
]
