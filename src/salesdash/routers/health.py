from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_db
from ..logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(db_session: AsyncSession = Depends(get_db)):
    try:
        await db_session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("readiness_check_failed", extra={"error": str(e)})
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ok"}
