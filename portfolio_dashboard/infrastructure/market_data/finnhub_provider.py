"""
Finnhub Market Data Provider
Quote, profile, search and daily candle endpoints.

Every call degrades to "no data" on transport errors or non-2xx answers;
callers treat all outputs as optional.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx

from portfolio_dashboard.domain.models import HistoryPoint, Profile, Quote, SearchResult

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 8
ALLOWED_SEARCH_TYPES = frozenset({"Common Stock", "EQS", "ETF"})
_SYMBOL_SEPARATORS = (".", ":", "/")


@dataclass(frozen=True)
class ProviderResponse:
    status: Optional[int]
    payload: Any = None

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300 and self.payload is not None


@dataclass(frozen=True)
class CandleResult:
    points: Optional[List[HistoryPoint]]
    status: Optional[int]


def _num(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return float(value)


# ----------------------------------------------------------------------
# PARSERS
# ----------------------------------------------------------------------

def parse_quote(symbol: str, payload: Any) -> Optional[Quote]:
    """
    Finnhub answers unknown symbols with an all-zero quote
    ({c: 0, pc: 0, t: 0}); that is reported as no data.
    """
    if not isinstance(payload, dict):
        return None
    price = _num(payload.get("c"))
    previous_close = _num(payload.get("pc"))
    timestamp = _num(payload.get("t"))

    if price is None:
        return None
    looks_empty = (
        (price == 0)
        and previous_close == 0
        and (timestamp is None or timestamp == 0)
    )
    if looks_empty:
        return None

    return Quote(
        symbol=symbol.upper(),
        price=price,
        change=_num(payload.get("d")) or 0.0,
        change_percent=_num(payload.get("dp")),
        high=_num(payload.get("h")),
        low=_num(payload.get("l")),
        open=_num(payload.get("o")),
        previous_close=previous_close,
        timestamp=int(timestamp) if timestamp is not None else None,
    )


def parse_profile(payload: Any) -> Optional[Profile]:
    if not isinstance(payload, dict):
        return None
    name = payload.get("name") or None
    ticker = payload.get("ticker") or None
    if not name and not ticker:
        return None
    return Profile(
        name=name,
        ticker=ticker,
        exchange=payload.get("exchange") or payload.get("exchangeShortName") or None,
        currency=payload.get("currency") or None,
        industry=payload.get("finnhubIndustry") or None,
    )


def parse_search_results(payload: Any, limit: int = SEARCH_LIMIT) -> List[SearchResult]:
    """Plain equity-like instruments only, deduped, provider order kept."""
    results: List[SearchResult] = []
    if not isinstance(payload, dict):
        return results
    items = payload.get("result")
    if not isinstance(items, list):
        return results

    seen = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        symbol = item.get("symbol")
        description = item.get("description")
        item_type = item.get("type") or None
        if not symbol or not description:
            continue
        symbol = str(symbol)
        if any(sep in symbol for sep in _SYMBOL_SEPARATORS):
            continue
        if item_type and item_type not in ALLOWED_SEARCH_TYPES:
            continue
        symbol = symbol.upper()
        if symbol in seen:
            continue
        seen.add(symbol)
        results.append(SearchResult(symbol=symbol, description=str(description), type=item_type))
        if len(results) >= limit:
            break
    return results


def parse_candles(payload: Any) -> Optional[List[HistoryPoint]]:
    if not isinstance(payload, dict) or payload.get("s") != "ok":
        return None
    closes = payload.get("c") or []
    times = payload.get("t") or []
    if not closes or not times:
        return None
    points = []
    for time_value, close_value in zip(times, closes):
        close = _num(close_value)
        ts = _num(time_value)
        if close is None or ts is None:
            continue
        points.append(HistoryPoint(time=int(ts), close=close))
    points.sort(key=lambda p: p.time)
    return points or None


# ----------------------------------------------------------------------
# PROVIDER
# ----------------------------------------------------------------------

class FinnhubProvider:
    """
    Keyed market data provider.

    ``configured`` is False without an API key; every method then returns
    no data without touching the network.
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://finnhub.io/api/v1",
        timeout_seconds: float = 30.0,
    ):
        self.api_key = (api_key or "").strip() or None
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    async def _request_json(self, path: str, params: Optional[dict] = None) -> ProviderResponse:
        if not self.api_key:
            return ProviderResponse(status=None)

        url = f"{self.base_url}{path}"
        headers = {
            "Accept": "application/json",
            "X-Finnhub-Token": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url, headers=headers, params=params)
        except Exception as exc:
            logger.warning("Finnhub request failed for %s: %s", path, exc)
            return ProviderResponse(status=None)

        if response.status_code != 200:
            logger.warning("Finnhub %s answered %s", path, response.status_code)
            return ProviderResponse(status=response.status_code)
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Finnhub %s returned a non-JSON payload", path)
            return ProviderResponse(status=response.status_code)
        return ProviderResponse(status=response.status_code, payload=payload)

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def request_quote(self, symbol: str) -> ProviderResponse:
        return await self._request_json("/quote", {"symbol": symbol.upper()})

    async def get_quote(self, symbol: str) -> Optional[Quote]:
        response = await self.request_quote(symbol)
        if not response.ok:
            return None
        return parse_quote(symbol, response.payload)

    async def is_valid_symbol(self, symbol: str) -> bool:
        quote = await self.get_quote(symbol)
        return quote is not None and quote.price > 0

    # ------------------------------------------------------------------
    # PROFILES
    # ------------------------------------------------------------------

    async def get_profile(self, symbol: str) -> Optional[Profile]:
        response = await self._request_json("/stock/profile2", {"symbol": symbol.upper()})
        if not response.ok:
            return None
        return parse_profile(response.payload)

    # ------------------------------------------------------------------
    # SEARCH
    # ------------------------------------------------------------------

    async def request_search(self, query: str) -> ProviderResponse:
        return await self._request_json("/search", {"q": query})

    async def search(self, query: str) -> List[SearchResult]:
        response = await self.request_search(query)
        if not response.ok:
            return []
        return parse_search_results(response.payload)

    # ------------------------------------------------------------------
    # CANDLES
    # ------------------------------------------------------------------

    async def get_candles(
        self,
        symbol: str,
        from_ts: int,
        to_ts: int,
        resolution: str = "D",
    ) -> CandleResult:
        response = await self._request_json(
            "/stock/candle",
            {
                "symbol": symbol.upper(),
                "resolution": resolution,
                "from": int(from_ts),
                "to": int(to_ts),
            },
        )
        if not response.ok:
            return CandleResult(points=None, status=response.status)
        points = parse_candles(response.payload)
        if points:
            logger.info(
                "[history] fetched candles symbol=%s resolution=%s points=%d status=%s",
                symbol, resolution, len(points), response.status,
            )
        return CandleResult(points=points, status=response.status)
