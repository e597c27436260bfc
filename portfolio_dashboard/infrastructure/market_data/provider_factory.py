"""
Market data provider factory (settings-driven).
"""

from __future__ import annotations

from portfolio_dashboard.config import settings
from portfolio_dashboard.infrastructure.market_data.finnhub_provider import FinnhubProvider
from portfolio_dashboard.infrastructure.market_data.history_resolver import HistoryResolver
from portfolio_dashboard.infrastructure.market_data.yfinance_provider import YFinanceProvider


def get_finnhub_provider() -> FinnhubProvider:
    return FinnhubProvider(
        api_key=settings.FINNHUB_API_KEY,
        base_url=settings.FINNHUB_BASE_URL,
        timeout_seconds=settings.MARKET_DATA_TIMEOUT_SECONDS,
    )


def get_yfinance_provider() -> YFinanceProvider:
    return YFinanceProvider(
        period=settings.YAHOO_HISTORY_PERIOD,
        interval=settings.YAHOO_HISTORY_INTERVAL,
    )


def get_history_resolver() -> HistoryResolver:
    return HistoryResolver(
        free_source=get_yfinance_provider(),
        keyed_source=get_finnhub_provider(),
        fallback_days=settings.HISTORY_FALLBACK_DAYS,
    )
