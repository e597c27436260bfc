import math

import pandas as pd
import pytest

from portfolio_dashboard.infrastructure.market_data.yfinance_provider import YFinanceProvider


def _frame(closes, adj=None, start="2024-01-01"):
    index = pd.date_range(start=start, periods=len(closes), freq="MS", tz="UTC")
    data = {"Close": closes}
    if adj is not None:
        data["Adj Close"] = adj
    return pd.DataFrame(data, index=index)


@pytest.mark.asyncio
async def test_history_prefers_adjusted_close(monkeypatch):
    provider = YFinanceProvider(period="1y", interval="1mo")
    seen = {}

    async def fake_history(symbol, **kwargs):
        seen["symbol"] = symbol
        seen.update(kwargs)
        return _frame([100.0, 110.0, 120.0], adj=[99.0, 109.0, 119.0])

    monkeypatch.setattr(provider, "_history", fake_history)

    points = await provider.get_history("aapl")

    assert seen["symbol"] == "AAPL"
    assert seen["period"] == "1y"
    assert seen["interval"] == "1mo"
    assert [p.close for p in points] == [99.0, 109.0, 119.0]
    assert points[0].time == int(pd.Timestamp("2024-01-01", tz="UTC").timestamp())
    assert [p.time for p in points] == sorted(p.time for p in points)


@pytest.mark.asyncio
async def test_history_skips_missing_closes(monkeypatch):
    provider = YFinanceProvider()

    async def fake_history(symbol, **kwargs):
        return _frame([100.0, math.nan, 120.0])

    monkeypatch.setattr(provider, "_history", fake_history)

    points = await provider.get_history("MSFT")
    assert [p.close for p in points] == [100.0, 120.0]


@pytest.mark.asyncio
async def test_fewer_than_two_points_is_no_history(monkeypatch):
    provider = YFinanceProvider()

    async def fake_history(symbol, **kwargs):
        return _frame([100.0])

    monkeypatch.setattr(provider, "_history", fake_history)

    assert await provider.get_history("ONE") is None


@pytest.mark.asyncio
async def test_provider_errors_are_swallowed(monkeypatch):
    provider = YFinanceProvider()

    async def fake_history(symbol, **kwargs):
        raise ValueError("Yahoo said no")

    monkeypatch.setattr(provider, "_history", fake_history)

    assert await provider.get_history("AAPL") is None


@pytest.mark.asyncio
async def test_empty_frame_is_no_history(monkeypatch):
    provider = YFinanceProvider()

    async def fake_history(symbol, **kwargs):
        return pd.DataFrame()

    monkeypatch.setattr(provider, "_history", fake_history)

    assert await provider.get_history("AAPL") is None
