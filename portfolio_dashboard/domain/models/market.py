"""
DOMAIN MODELS: MARKET DATA

Normalized shapes returned by the market data adapters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class HistoryPoint:
    time: int  # unix seconds
    close: float


SymbolHistory = List[HistoryPoint]


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    change: float
    change_percent: Optional[float]
    high: Optional[float]
    low: Optional[float]
    open: Optional[float]
    previous_close: Optional[float]
    timestamp: Optional[int]


@dataclass(frozen=True)
class Profile:
    name: Optional[str]
    ticker: Optional[str]
    exchange: Optional[str] = None
    currency: Optional[str] = None
    industry: Optional[str] = None


@dataclass(frozen=True)
class SearchResult:
    symbol: str
    description: str
    type: Optional[str]
