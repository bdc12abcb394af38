"""
Health metric endpoints.

iOS app workflow:
    1. App reads HealthKit samples (BP, weight, steps, ...)
    2. App POSTs a batch to /health/metrics/sync (safe to repeat)
    3. The health check loops read /health/summary/{user_id}
"""

import datetime
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import settings
from app.db.session import get_db
from app.health import day_window
from app.schemas.health import (
    BatchSyncResult,
    DailyHealthSummary,
    HealthMetricBatch,
    HealthMetricCreate,
    HealthMetricResponse,
    HealthMetricSource,
    HealthMetricType,
    MetricPage,
    MetricQuery,
    SummaryText,
)
from app.services.health_service import HealthService

logger = logging.getLogger(__name__)

router = APIRouter()


def _storage_error(action: str, exc: Exception) -> HTTPException:
    logger.error("Failed to %s: %s", action, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.post("/metrics", summary="Store a single health metric.", response_model=HealthMetricResponse,
             status_code=status.HTTP_201_CREATED, )
def create_metric(data: HealthMetricCreate, db: Session = Depends(get_db), ):
    try:
        row = HealthService(db).ingest_one(data.user_id, data)
    except SQLAlchemyError as e:
        raise _storage_error("store health metric", e)
    return HealthMetricResponse.model_validate(row)


@router.post("/metrics/sync", summary="Batch sync health metrics.", response_model=BatchSyncResult, )
def sync_metrics(data: HealthMetricBatch, db: Session = Depends(get_db), ):
    """Primary endpoint of the HealthKit sync. All-or-nothing; duplicates are upserted."""
    try:
        return HealthService(db).ingest_batch(data.user_id, data.metrics)
    except SQLAlchemyError as e:
        raise _storage_error("sync health metrics", e)


@router.get("/metrics/{user_id}", summary="Query raw health metrics.", response_model=MetricPage, )
def list_metrics(user_id: str,
                 metric_type: Optional[HealthMetricType] = Query(None, description="Metric type filter"),
                 source: Optional[HealthMetricSource] = Query(None, description="Source filter"),
                 start_date: Optional[datetime.datetime] = Query(None, description="recorded_at >= (inclusive)"),
                 end_date: Optional[datetime.datetime] = Query(None, description="recorded_at <= (inclusive)"),
                 limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
                 offset: int = Query(0, ge=0, description="Records to skip"),
                 db: Session = Depends(get_db), ):
    filters = MetricQuery(metric_type=metric_type, source=source, start_date=start_date, end_date=end_date,
                          limit=limit, offset=offset)
    return HealthService(db).query_metrics(user_id, filters)


@router.get("/metrics/{user_id}/latest", summary="Latest value of each metric type.",
            response_model=list[HealthMetricResponse], )
def latest_metrics(user_id: str, db: Session = Depends(get_db), ):
    return HealthService(db).latest_metrics(user_id)


@router.get("/summary/{user_id}", summary="Daily (or multi-day) health summary.",
            response_model=Union[DailyHealthSummary, list[DailyHealthSummary]], )
def get_summary(user_id: str,
                date: Optional[datetime.date] = Query(None, description="YYYY-MM-DD (default: today)"),
                days: int = Query(1, ge=1, le=settings.SUMMARY_MAX_DAYS, description="Number of days"),
                db: Session = Depends(get_db), ):
    """``days == 1`` returns one summary; otherwise a list, newest first."""
    service = HealthService(db)
    if days == 1:
        return service.daily_summary(user_id, date or day_window.today(service.zone))
    return service.multi_day_summaries(user_id, days, date)


@router.get("/summary/{user_id}/text", summary="Daily health summary as prompt text.", response_model=SummaryText, )
def get_summary_text(user_id: str,
                     date: Optional[datetime.date] = Query(None, description="YYYY-MM-DD (default: today)"),
                     db: Session = Depends(get_db), ):
    service = HealthService(db)
    summary = service.daily_summary(user_id, date or day_window.today(service.zone))
    return SummaryText(date=summary.date, text=service.format_for_prompt(summary))
