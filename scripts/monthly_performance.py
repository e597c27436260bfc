"""
Print the last 12 monthly closes for one ticker from Yahoo Finance.

    python scripts/monthly_performance.py --symbol AAPL
"""

import argparse
import asyncio
import logging
from datetime import datetime, timezone

import pandas as pd

from portfolio_dashboard.infrastructure.market_data.yfinance_provider import YFinanceProvider

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def monthly_performance(symbol: str) -> pd.DataFrame:
    provider = YFinanceProvider(period="1y", interval="1mo")
    points = await provider.get_history(symbol)
    if not points:
        return pd.DataFrame(columns=["month", "close"])
    return pd.DataFrame(
        {
            "month": [
                datetime.fromtimestamp(p.time, tz=timezone.utc).strftime("%b %Y")
                for p in points
            ],
            "close": [round(p.close, 2) for p in points],
        }
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="12 month monthly performance for a ticker")
    parser.add_argument("--symbol", type=str, default="AAPL", help="Ticker symbol")
    args = parser.parse_args()

    symbol = args.symbol.strip().upper()
    frame = asyncio.run(monthly_performance(symbol))
    if frame.empty:
        logger.error(f"No data found for {symbol}")
    else:
        print(f"12 Month Monthly Performance for {symbol}")
        print(frame.to_string(index=False))
