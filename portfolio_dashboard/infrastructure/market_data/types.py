"""
Market data provider protocols for type hints.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from portfolio_dashboard.domain.models import HistoryPoint, Profile, Quote, SearchResult


class HistorySource(Protocol):
    name: str

    async def get_history(self, symbol: str) -> Optional[List[HistoryPoint]]:
        ...


class KeyedMarketDataSource(Protocol):
    name: str

    @property
    def configured(self) -> bool:
        ...

    async def get_quote(self, symbol: str) -> Optional[Quote]:
        ...

    async def get_profile(self, symbol: str) -> Optional[Profile]:
        ...

    async def search(self, query: str) -> List[SearchResult]:
        ...

    async def get_candles(self, symbol: str, from_ts: int, to_ts: int, resolution: str = "D"):
        ...

    async def is_valid_symbol(self, symbol: str) -> bool:
        ...
