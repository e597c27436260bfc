"""
Portfolio API Routes
Valuation of every investor (or one) against live market data.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from portfolio_dashboard.api.dependencies import investments_repository, portfolio_service
from portfolio_dashboard.domain.schemas.portfolio import InvestorValuationSchema, PortfolioResponse
from portfolio_dashboard.infrastructure.db.repositories.investments_repository import InvestmentsRepository
from portfolio_dashboard.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    repository: InvestmentsRepository = Depends(investments_repository),
    service: PortfolioService = Depends(portfolio_service),
):
    """All investors with per-holding and aggregate valuation."""
    investors = await repository.list_investors()
    snapshot = await service.build_portfolio(investors)
    return PortfolioResponse.model_validate(snapshot)


@router.get("/{slug}", response_model=InvestorValuationSchema)
async def get_investor_portfolio(
    slug: str,
    repository: InvestmentsRepository = Depends(investments_repository),
    service: PortfolioService = Depends(portfolio_service),
):
    investors = await repository.list_investors()
    valuation = await service.get_investor(investors, slug)
    if valuation is None:
        raise HTTPException(status_code=404, detail="Investor not found.")
    return InvestorValuationSchema.model_validate(valuation)
