import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_dashboard.config import settings
from portfolio_dashboard.infrastructure.db.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "finnhubConfigured": bool((settings.FINNHUB_API_KEY or "").strip())}


@router.get("/ready")
async def ready(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as exc:
        logger.warning("Readiness check failed: %s", exc)
        db_connected = False

    return {
        "status": "ready" if db_connected else "not_ready",
        "dbConnected": db_connected,
    }
