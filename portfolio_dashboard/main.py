"""
FastAPI Main Application
Investor portfolio dashboard API
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_dashboard.api.errors import register_exception_handlers
from portfolio_dashboard.api.routes import admin, health, market_data, portfolio
from portfolio_dashboard.config import settings
from portfolio_dashboard.core.logging import setup_logging
from portfolio_dashboard.infrastructure.db.database import close_db, init_db

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    """
    logger.info("=" * 60)
    logger.info("Starting Portfolio Dashboard (%s)", settings.APP_ENV)
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    if not (settings.FINNHUB_API_KEY or "").strip():
        logger.warning("FINNHUB_API_KEY not set: quotes, profiles and search are disabled")
    if settings.ADMIN_PASSWORD == "change-me":
        logger.warning("ADMIN_PASSWORD is the default value; set it before exposing the API")

    logger.info("API Server: http://%s:%s", settings.API_HOST, settings.API_PORT)
    logger.info("API Docs: http://%s:%s/docs", settings.API_HOST, settings.API_PORT)

    yield

    logger.info("Shutting down Portfolio Dashboard...")
    await close_db()
    logger.info("Database connections closed")


def include_routers(app: FastAPI) -> None:
    app.include_router(health.router, tags=["Health"])
    app.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])
    app.include_router(market_data.router, tags=["Market Data"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])


app = FastAPI(
    title="Investor Portfolio Dashboard",
    description="Per-investor valuation of stock allocations against live market data",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
include_routers(app)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "portfolio_dashboard.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
