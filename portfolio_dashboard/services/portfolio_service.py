"""
Portfolio Service
Fetches market data per unique symbol and runs the valuation engine.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from portfolio_dashboard.domain.models import HistoryPoint, Investor, InvestorValuation, Profile, Quote
from portfolio_dashboard.domain.services.valuation_engine import valuate
from portfolio_dashboard.infrastructure.market_data.finnhub_provider import FinnhubProvider
from portfolio_dashboard.infrastructure.market_data.yfinance_provider import YFinanceProvider
from portfolio_dashboard.utils.time import to_epoch_seconds, utc_now

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSnapshot:
    as_of: int  # epoch millis
    investors: List[InvestorValuation]
    symbols: List[str]


def normalize_investors(investors: Sequence[Investor], now: datetime) -> List[Investor]:
    """
    Merge records sharing a name, uppercase symbols and stamp missing
    purchase dates with ``now``. Input objects are left untouched.
    """
    fallback_date = now.isoformat()
    grouped: "OrderedDict[str, Investor]" = OrderedDict()
    for investor in investors:
        allocations = [
            replace(
                allocation,
                symbol=allocation.symbol.upper(),
                date_invested=allocation.date_invested or fallback_date,
            )
            for allocation in investor.allocations
        ]
        existing = grouped.get(investor.name)
        if existing is None:
            grouped[investor.name] = Investor(name=investor.name, allocations=allocations)
        else:
            existing.allocations.extend(allocations)
    return list(grouped.values())


def _unwrap(symbol: str, label: str, result: Any) -> Any:
    if isinstance(result, BaseException):
        logger.error("%s fetch failed for %s: %s", label, symbol, result)
        return None
    return result


class PortfolioService:
    def __init__(self, finnhub: FinnhubProvider, yahoo: Optional[YFinanceProvider] = None):
        self.finnhub = finnhub
        self.yahoo = yahoo

    async def _history(self, symbol: str, from_ts: int, to_ts: int) -> List[HistoryPoint]:
        if self.finnhub.configured:
            result = await self.finnhub.get_candles(symbol, from_ts, to_ts, "D")
            if result.points:
                return result.points
        if self.yahoo is not None:
            points = await self.yahoo.get_history(symbol)
            if points:
                return points
        return []

    async def fetch_market_data(
        self,
        symbols: Sequence[str],
        from_ts: int,
        to_ts: int,
    ) -> tuple[Dict[str, List[HistoryPoint]], Dict[str, Optional[Quote]], Dict[str, Optional[Profile]]]:
        """
        Quote, history and profile for every symbol, all issued concurrently.
        Results are matched back by symbol, not by completion order.
        """
        quote_results, history_results, profile_results = await asyncio.gather(
            asyncio.gather(*(self.finnhub.get_quote(s) for s in symbols), return_exceptions=True),
            asyncio.gather(*(self._history(s, from_ts, to_ts) for s in symbols), return_exceptions=True),
            asyncio.gather(*(self.finnhub.get_profile(s) for s in symbols), return_exceptions=True),
        )

        histories: Dict[str, List[HistoryPoint]] = {}
        quotes: Dict[str, Optional[Quote]] = {}
        profiles: Dict[str, Optional[Profile]] = {}
        for symbol, quote, history, profile in zip(symbols, quote_results, history_results, profile_results):
            quotes[symbol] = _unwrap(symbol, "Quote", quote)
            histories[symbol] = _unwrap(symbol, "History", history) or []
            profiles[symbol] = _unwrap(symbol, "Profile", profile)
        return histories, quotes, profiles

    async def build_portfolio(
        self,
        investors: Sequence[Investor],
        now: Optional[datetime] = None,
    ) -> PortfolioSnapshot:
        now = now or utc_now()
        if not self.finnhub.configured:
            logger.warning("Finnhub API key not configured; quotes and profiles unavailable")

        normalized = normalize_investors(investors, now)
        symbols = list(
            OrderedDict.fromkeys(
                allocation.symbol
                for investor in normalized
                for allocation in investor.allocations
                if allocation.symbol
            )
        )

        to_ts = int(now.timestamp())
        start_points = [
            to_epoch_seconds(allocation.date_invested, default=now)
            for investor in normalized
            for allocation in investor.allocations
        ]
        from_ts = min(start_points) if start_points else to_ts

        histories, quotes, profiles = await self.fetch_market_data(symbols, from_ts, to_ts)
        valuations = valuate(normalized, histories, quotes, profiles, now=now)

        logger.info(
            "Portfolio snapshot ready | investors=%d symbols=%d",
            len(valuations),
            len(symbols),
        )
        return PortfolioSnapshot(
            as_of=int(now.timestamp() * 1000),
            investors=valuations,
            symbols=symbols,
        )

    async def get_investor(
        self,
        investors: Sequence[Investor],
        slug: str,
        now: Optional[datetime] = None,
    ) -> Optional[InvestorValuation]:
        if not any(investor.matches(slug) for investor in investors):
            return None
        # Full build so cost-basis baselines match the dashboard view
        snapshot = await self.build_portfolio(investors, now=now)
        target = slug.strip().lower()
        for valuation in snapshot.investors:
            if valuation.slug == target or valuation.name.lower() == target:
                return valuation
        return None
