"""
Liveness and readiness probes.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import settings
from app.core.datetime_utils import utc_now
from app.core.question_bank import default_bank
from app.models import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Report service status, the size of the loaded quiz and database reachability.

    Responds 503 with status "degraded" when the session store cannot be
    queried; quizzes still run but their sessions will not be saved.
    """
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database probe failed: {e}")
        database = "unavailable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": utc_now().isoformat(),
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "questions": len(default_bank),
            "database": database,
        },
    )


@router.get("/ping")
async def ping():
    return {"message": "pong"}
