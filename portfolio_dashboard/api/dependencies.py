"""
Shared route dependencies.

Providers are built per request from settings; tests swap them through
``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_dashboard.config import settings
from portfolio_dashboard.domain.services.admin_gate import AdminGate
from portfolio_dashboard.infrastructure.db.database import get_db
from portfolio_dashboard.infrastructure.db.repositories.investments_repository import InvestmentsRepository
from portfolio_dashboard.infrastructure.market_data.finnhub_provider import FinnhubProvider
from portfolio_dashboard.infrastructure.market_data.history_resolver import HistoryResolver
from portfolio_dashboard.infrastructure.market_data.provider_factory import (
    get_finnhub_provider,
    get_history_resolver,
    get_yfinance_provider,
)
from portfolio_dashboard.infrastructure.market_data.yfinance_provider import YFinanceProvider
from portfolio_dashboard.services.investor_service import InvestorService
from portfolio_dashboard.services.portfolio_service import PortfolioService
from portfolio_dashboard.utils.time import local_tz

logger = logging.getLogger(__name__)

ADMIN_HEADER = "X-Admin-Token"


def finnhub_dependency() -> FinnhubProvider:
    return get_finnhub_provider()


def yahoo_dependency() -> YFinanceProvider:
    return get_yfinance_provider()


def history_resolver_dependency() -> HistoryResolver:
    return get_history_resolver()


def admin_gate_dependency() -> AdminGate:
    return AdminGate(
        secret_key=settings.SECRET_KEY,
        password=settings.ADMIN_PASSWORD,
        tz=local_tz(),
    )


def investments_repository(db: AsyncSession = Depends(get_db)) -> InvestmentsRepository:
    return InvestmentsRepository(db)


def investor_service(
    repository: InvestmentsRepository = Depends(investments_repository),
    finnhub: FinnhubProvider = Depends(finnhub_dependency),
) -> InvestorService:
    return InvestorService(repository, symbol_validator=finnhub.is_valid_symbol)


def portfolio_service(
    finnhub: FinnhubProvider = Depends(finnhub_dependency),
    yahoo: YFinanceProvider = Depends(yahoo_dependency),
) -> PortfolioService:
    return PortfolioService(finnhub=finnhub, yahoo=yahoo)


def presented_admin_token(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None, alias=ADMIN_HEADER),
) -> Optional[str]:
    return request.cookies.get(settings.ADMIN_COOKIE_NAME) or x_admin_token


def require_admin(
    token: Optional[str] = Depends(presented_admin_token),
    gate: AdminGate = Depends(admin_gate_dependency),
) -> None:
    if not gate.verify(token):
        logger.info("Admin gate rejected a write request")
        raise HTTPException(status_code=401, detail="Unauthorized")
