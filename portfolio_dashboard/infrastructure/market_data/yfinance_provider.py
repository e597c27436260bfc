"""
YFinance Market Data Provider
Free, key-less history series from Yahoo Finance.
Async-safe via thread offloading.
"""

import asyncio
import logging
import math
from typing import List, Optional

import pandas as pd
import yfinance as yf

from portfolio_dashboard.domain.models import HistoryPoint

logger = logging.getLogger(__name__)


class YFinanceProvider:
    """
    Yahoo Finance history provider.

    Returns None unless at least two usable points come back.
    """

    name = "yahoo"

    def __init__(self, period: str = "1y", interval: str = "1mo"):
        self.period = period
        self.interval = interval

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _history(self, symbol: str, **kwargs) -> pd.DataFrame:
        """
        Async-safe wrapper around yfinance history()
        """
        ticker = yf.Ticker(symbol)
        return await asyncio.to_thread(ticker.history, **kwargs)

    @staticmethod
    def _frame_to_points(frame: Optional[pd.DataFrame]) -> List[HistoryPoint]:
        if frame is None or frame.empty:
            return []

        # Adjusted closes win when the frame has any
        column = None
        if "Adj Close" in frame.columns and frame["Adj Close"].notna().any():
            column = "Adj Close"
        elif "Close" in frame.columns:
            column = "Close"
        if column is None:
            return []

        points: List[HistoryPoint] = []
        for ts, value in frame[column].items():
            if value is None or pd.isna(value):
                continue
            close = float(value)
            if not math.isfinite(close):
                continue
            points.append(HistoryPoint(time=int(pd.Timestamp(ts).timestamp()), close=close))
        points.sort(key=lambda p: p.time)
        return points

    # ------------------------------------------------------------------
    # HISTORY
    # ------------------------------------------------------------------

    async def get_history(self, symbol: str) -> Optional[List[HistoryPoint]]:
        try:
            frame = await self._history(
                symbol.upper(),
                period=self.period,
                interval=self.interval,
                auto_adjust=False,
                actions=False,
            )
        except Exception as exc:
            logger.warning("Yahoo history fetch failed for %s: %s", symbol, exc)
            return None

        points = self._frame_to_points(frame)
        logger.info("[history] fetched Yahoo symbol=%s points=%d", symbol, len(points))
        if len(points) < 2:
            return None
        return points
