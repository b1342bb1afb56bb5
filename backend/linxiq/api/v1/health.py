"""
Health check and status endpoints.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linxiq.core import settings
from linxiq.core.datetime_utils import utc_now
from linxiq.models import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _database_status(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e}")
        return "unavailable"
    return "connected"


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Service and database health.

    Returns 200 when the database answers and 503 with status "degraded"
    otherwise.
    """
    database = _database_status(db)
    healthy = database == "connected"
    body = {
        "status": "healthy" if healthy else "degraded",
        "database": database,
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )


@router.get("/ping")
def ping():
    return {"message": "pong"}
