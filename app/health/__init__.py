"""Health metric core — ingestion, civil-day windows, aggregation and formatting."""

from app.health.aggregation import summarize
from app.health.ingest import BatchIngestor

__all__ = ["BatchIngestor", "summarize"]
