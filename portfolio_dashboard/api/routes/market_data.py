"""
Market Data API Routes
Quote, history and symbol search pass-through endpoints.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from portfolio_dashboard.api.dependencies import finnhub_dependency, history_resolver_dependency
from portfolio_dashboard.domain.errors import ConfigurationError
from portfolio_dashboard.domain.schemas.portfolio import (
    HistoryPointSchema,
    HistoryResponse,
    QuoteResponse,
    SearchResponse,
    SearchResultSchema,
)
from portfolio_dashboard.infrastructure.market_data.finnhub_provider import (
    FinnhubProvider,
    parse_quote,
    parse_search_results,
)
from portfolio_dashboard.infrastructure.market_data.history_resolver import HistoryResolver, HistoryStatus

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_key(finnhub: FinnhubProvider) -> None:
    if not finnhub.configured:
        logger.error("FINNHUB_API_KEY is not set")
        raise ConfigurationError("Market data API key is not configured.")


@router.get("/quote", response_model=QuoteResponse)
async def get_quote(
    symbol: Optional[str] = Query(default=None),
    finnhub: FinnhubProvider = Depends(finnhub_dependency),
):
    """Live quote merged with the company profile, when one exists."""
    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise HTTPException(status_code=400, detail="Missing symbol")
    _require_key(finnhub)

    response, profile = await asyncio.gather(
        finnhub.request_quote(symbol),
        finnhub.get_profile(symbol),
    )
    if not response.ok:
        logger.warning("Quote request failed for %s (status=%s)", symbol, response.status)
        raise HTTPException(status_code=502, detail="Failed to fetch quote")

    quote = parse_quote(symbol, response.payload)
    if quote is None:
        raise HTTPException(status_code=404, detail="No data found for symbol")

    return QuoteResponse(
        symbol=quote.symbol,
        name=profile.name if profile else None,
        exchange=profile.exchange if profile else None,
        currency=profile.currency if profile else None,
        industry=profile.industry if profile else None,
        price=quote.price,
        change=quote.change,
        change_percent=quote.change_percent,
        high=quote.high,
        low=quote.low,
        open=quote.open,
        previous_close=quote.previous_close,
        timestamp=quote.timestamp,
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    symbol: Optional[str] = Query(default=None),
    resolver: HistoryResolver = Depends(history_resolver_dependency),
):
    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise HTTPException(status_code=400, detail="Missing symbol")

    resolution = await resolver.resolve(symbol)
    if resolution.classification == HistoryStatus.RATE_LIMITED:
        raise HTTPException(
            status_code=429,
            detail="Price history is temporarily unavailable. Please try again later.",
        )
    if not resolution.resolved:
        raise HTTPException(status_code=404, detail="No price history found for symbol")

    logger.info(
        "[history] %s served by %s (%d points)",
        symbol, resolution.provider, len(resolution.points or []),
    )
    return HistoryResponse(
        symbol=resolution.symbol,
        history=[HistoryPointSchema(time=p.time, close=p.close) for p in resolution.points],
    )


@router.get("/search", response_model=SearchResponse)
async def search_symbols(
    q: Optional[str] = Query(default=None),
    finnhub: FinnhubProvider = Depends(finnhub_dependency),
):
    """Equity-like matches for a free-text query, in provider order."""
    query = (q or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Missing query")
    _require_key(finnhub)

    response = await finnhub.request_search(query)
    if not response.ok:
        logger.warning("Symbol search failed for %r (status=%s)", query, response.status)
        raise HTTPException(status_code=502, detail="Failed to search symbols")

    results = parse_search_results(response.payload)
    return SearchResponse(
        results=[
            SearchResultSchema(symbol=r.symbol, description=r.description, type=r.type)
            for r in results
        ]
    )
