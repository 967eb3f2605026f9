import logging
import time
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from planelog.core.database import get_db
from planelog.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

STARTED_AT = time.monotonic()


@router.get("/health", response_model=HealthResponse)
async def health(db: Session = Depends(get_db)):
    """
    Health check used by monitoring/deployment tools.

    An unreachable store is reported as degraded rather than failing the check.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach database: {e}")
        database = "disconnected"

    return HealthResponse(
        status="ok" if database == "connected" else "degraded",
        database=database,
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.monotonic() - STARTED_AT, 3),
    )
