import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from ..config import settings
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    database = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"
    return {"status": "ok", "app": settings.app_name, "debug": settings.debug, "database": database}
