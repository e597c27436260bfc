"""
History resolver - try the free provider, then keyed ranges, then a quote.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from portfolio_dashboard.domain.models import HistoryPoint
from portfolio_dashboard.infrastructure.market_data.types import HistorySource, KeyedMarketDataSource
from portfolio_dashboard.utils.time import now_epoch_seconds

logger = logging.getLogger(__name__)

ONE_DAY = 24 * 60 * 60
DEFAULT_FALLBACK_DAYS = (450, 400, 365, 240, 120, 60)
RATE_LIMIT_STATUSES = (403, 429)


class HistoryStatus(str, Enum):
    RESOLVED = "resolved"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class HistoryResolution:
    symbol: str
    points: Optional[List[HistoryPoint]]
    classification: HistoryStatus
    provider: Optional[str] = None
    status: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.classification == HistoryStatus.RESOLVED


class HistoryResolver:
    def __init__(
        self,
        free_source: Optional[HistorySource],
        keyed_source: Optional[KeyedMarketDataSource],
        fallback_days: Sequence[int] = DEFAULT_FALLBACK_DAYS,
        clock: Callable[[], int] = now_epoch_seconds,
    ):
        self.free_source = free_source
        self.keyed_source = keyed_source
        self.fallback_days = list(fallback_days)
        self.clock = clock

    def _keyed_available(self) -> bool:
        return self.keyed_source is not None and self.keyed_source.configured

    async def _from_free_source(self, symbol: str) -> Optional[List[HistoryPoint]]:
        if self.free_source is None:
            return None
        try:
            points = await self.free_source.get_history(symbol)
        except Exception as exc:
            logger.warning("[history] %s failed for %s: %s", self.free_source.name, symbol, exc)
            return None
        if points and len(points) >= 2:
            return list(points)
        return None

    async def _from_keyed_ranges(
        self,
        symbol: str,
        now_ts: int,
        windows: Sequence[int],
    ) -> tuple[Optional[List[HistoryPoint]], Optional[int]]:
        last_status: Optional[int] = None
        for days in windows:
            from_ts = now_ts - days * ONE_DAY
            try:
                result = await self.keyed_source.get_candles(symbol, from_ts, now_ts, "D")
            except Exception as exc:
                logger.warning("[history] candles failed for %s (%sd): %s", symbol, days, exc)
                continue
            if result.status is not None:
                last_status = result.status
            logger.debug(
                "[history] candles symbol=%s days=%s status=%s points=%s",
                symbol, days, result.status, len(result.points or []),
            )
            if result.points and len(result.points) >= 2:
                return list(result.points), last_status
        return None, last_status

    async def _from_quote(self, symbol: str, now_ts: int) -> Optional[List[HistoryPoint]]:
        try:
            quote = await self.keyed_source.get_quote(symbol)
        except Exception as exc:
            logger.warning("[history] quote fallback failed for %s: %s", symbol, exc)
            return None
        logger.info(
            "[history] fallback to quote symbol=%s current=%s prev_close=%s",
            symbol,
            quote.price if quote else None,
            quote.previous_close if quote else None,
        )
        if quote is None:
            return None
        previous = quote.previous_close if quote.previous_close else quote.price
        return [
            HistoryPoint(time=now_ts - 7 * ONE_DAY, close=previous),
            HistoryPoint(time=now_ts, close=quote.price),
        ]

    async def resolve(
        self,
        symbol: str,
        fallback_window: Optional[Sequence[int]] = None,
    ) -> HistoryResolution:
        """
        Walk the fallback chain. Never raises: either points come back or an
        unresolved classification does.
        """
        normalized = symbol.strip().upper()
        windows = list(fallback_window) if fallback_window is not None else self.fallback_days
        now_ts = self.clock()

        points = await self._from_free_source(normalized)
        if points:
            return HistoryResolution(
                symbol=normalized,
                points=points,
                classification=HistoryStatus.RESOLVED,
                provider=self.free_source.name,
            )

        last_status: Optional[int] = None
        if self._keyed_available():
            points, last_status = await self._from_keyed_ranges(normalized, now_ts, windows)
            if points:
                return HistoryResolution(
                    symbol=normalized,
                    points=points,
                    classification=HistoryStatus.RESOLVED,
                    provider=self.keyed_source.name,
                    status=last_status,
                )

            points = await self._from_quote(normalized, now_ts)
            if points:
                return HistoryResolution(
                    symbol=normalized,
                    points=points,
                    classification=HistoryStatus.RESOLVED,
                    provider=f"{self.keyed_source.name}-quote",
                    status=last_status,
                )

        classification = (
            HistoryStatus.RATE_LIMITED
            if last_status in RATE_LIMIT_STATUSES
            else HistoryStatus.NOT_FOUND
        )
        logger.info(
            "[history] unresolved symbol=%s status=%s classification=%s",
            normalized, last_status, classification.value,
        )
        return HistoryResolution(
            symbol=normalized,
            points=None,
            classification=classification,
            status=last_status,
        )
