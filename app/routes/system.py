import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database.connection import get_db
from app.schemas.system import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Public health check: database probe (SELECT 1) plus the in-process
    request counters kept by MetricsMiddleware.
    """
    now = datetime.utcnow()
    start_time = getattr(request.app.state, "start_time", now)

    db_error = None
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health check database probe failed: %s", e)
        db_error = str(e)

    metrics = getattr(request.app.state, "metrics", None) or {}
    requests_count = int(metrics.get("requests", 0))
    total_ms = float(metrics.get("total_response_ms", 0.0))

    return HealthCheckResponse(
        status="ok" if db_error is None else "degraded",
        now=now,
        uptime_seconds=(now - start_time).total_seconds(),
        db_ok=db_error is None,
        db_error=db_error,
        requests_count=requests_count,
        server_errors=int(metrics.get("errors", 0)),
        avg_response_ms=(total_ms / requests_count) if requests_count else None,
    )
