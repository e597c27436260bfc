import pytest

import portfolio_dashboard.infrastructure.market_data.finnhub_provider as finnhub_module
from portfolio_dashboard.infrastructure.market_data.finnhub_provider import (
    FinnhubProvider,
    ProviderResponse,
    parse_candles,
    parse_profile,
    parse_quote,
    parse_search_results,
)


def test_all_zero_quote_is_no_data():
    assert parse_quote("ZZZZ", {"c": 0, "d": None, "dp": None, "h": 0, "l": 0, "o": 0, "pc": 0, "t": 0}) is None
    assert parse_quote("ZZZZ", {"c": 0, "pc": 0, "t": None}) is None
    assert parse_quote("ZZZZ", {"c": None, "pc": 5}) is None
    assert parse_quote("ZZZZ", "not a dict") is None


def test_quote_fields_are_normalized():
    quote = parse_quote(
        "aapl",
        {"c": 150.5, "d": 1.5, "dp": 1.01, "h": 151, "l": 149, "o": 149.5, "pc": 149, "t": 1700000000},
    )

    assert quote.symbol == "AAPL"
    assert quote.price == 150.5
    assert quote.change == 1.5
    assert quote.change_percent == 1.01
    assert quote.high == 151.0
    assert quote.previous_close == 149.0
    assert quote.timestamp == 1700000000


def test_zero_price_with_previous_close_is_still_a_quote():
    quote = parse_quote("HALT", {"c": 0, "pc": 12.0, "t": 1700000000})
    assert quote is not None
    assert quote.price == 0.0


def test_profile_requires_name_or_ticker():
    assert parse_profile({}) is None
    profile = parse_profile({"name": "Apple Inc", "ticker": "AAPL", "exchange": "NASDAQ", "finnhubIndustry": "Technology"})
    assert profile.name == "Apple Inc"
    assert profile.industry == "Technology"


def test_search_filters_dedupes_and_caps():
    items = [
        {"symbol": "AAPL", "description": "APPLE INC", "type": "Common Stock"},
        {"symbol": "AAPL", "description": "APPLE INC DUP", "type": "Common Stock"},
        {"symbol": "AAPL.MX", "description": "APPLE INC", "type": "Common Stock"},
        {"symbol": "APC:GR", "description": "APPLE INC", "type": "Common Stock"},
        {"symbol": "BRK/B", "description": "BERKSHIRE", "type": "Common Stock"},
        {"symbol": "AAPLW", "description": "APPLE WARRANT", "type": "Warrant"},
        {"symbol": "SPY", "description": "SPDR S&P 500", "type": "ETF"},
    ] + [
        {"symbol": f"APP{i}", "description": f"APP {i}", "type": "Common Stock"}
        for i in range(10)
    ]

    results = parse_search_results({"count": len(items), "result": items})

    assert [r.symbol for r in results] == ["AAPL", "SPY", "APP0", "APP1", "APP2", "APP3", "APP4", "APP5"]
    assert results[0].description == "APPLE INC"
    assert len(results) == 8


def test_candles_require_ok_status():
    assert parse_candles({"s": "no_data"}) is None
    points = parse_candles({"s": "ok", "t": [20, 10], "c": [2.0, 1.0]})
    assert [(p.time, p.close) for p in points] == [(10, 1.0), (20, 2.0)]


@pytest.mark.asyncio
async def test_provider_without_key_never_calls_out(monkeypatch):
    provider = FinnhubProvider(api_key="  ")

    class FailingClient:
        def __init__(self, *args, **kwargs):
            raise AssertionError("network should not be touched")

    monkeypatch.setattr(finnhub_module.httpx, "AsyncClient", FailingClient)

    assert provider.configured is False
    assert await provider.get_quote("AAPL") is None
    assert await provider.search("apple") == []
    result = await provider.get_candles("AAPL", 0, 1)
    assert result.points is None and result.status is None


@pytest.mark.asyncio
async def test_get_quote_parses_payload(monkeypatch):
    provider = FinnhubProvider(api_key="key")
    calls = []

    async def fake_request_json(path, params=None):
        calls.append((path, params))
        return ProviderResponse(status=200, payload={"c": 10.0, "d": 0.5, "dp": 5.0, "pc": 9.5, "t": 1700000000})

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    quote = await provider.get_quote("msft")

    assert quote.price == 10.0
    assert calls == [("/quote", {"symbol": "MSFT"})]
    assert await provider.is_valid_symbol("msft") is True


@pytest.mark.asyncio
async def test_invalid_symbol_check(monkeypatch):
    provider = FinnhubProvider(api_key="key")

    async def fake_request_json(path, params=None):
        return ProviderResponse(status=200, payload={"c": 0, "pc": 0, "t": 0})

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    assert await provider.get_quote("ZZZZ") is None
    assert await provider.is_valid_symbol("ZZZZ") is False


@pytest.mark.asyncio
async def test_candles_keep_status_on_failure(monkeypatch):
    provider = FinnhubProvider(api_key="key")

    async def fake_request_json(path, params=None):
        return ProviderResponse(status=429)

    monkeypatch.setattr(provider, "_request_json", fake_request_json)

    result = await provider.get_candles("AAPL", 0, 100)
    assert result.points is None
    assert result.status == 429


@pytest.mark.asyncio
async def test_request_json_sends_key_header_and_reports_status(monkeypatch):
    provider = FinnhubProvider(api_key="secret-key", base_url="https://example.test/api/v1/")
    seen = {}

    class FakeResponse:
        def __init__(self, status_code, payload):
            self.status_code = status_code
            self._payload = payload

        def json(self):
            return self._payload

    class FakeClient:
        def __init__(self, *args, **kwargs):
            seen["timeout"] = kwargs.get("timeout")

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, headers=None, params=None):
            seen["url"] = url
            seen["headers"] = headers
            seen["params"] = params
            return FakeResponse(403, {"error": "limit"})

    monkeypatch.setattr(finnhub_module.httpx, "AsyncClient", FakeClient)

    response = await provider._request_json("/stock/candle", {"symbol": "AAPL"})

    assert response.status == 403
    assert response.ok is False
    assert seen["url"] == "https://example.test/api/v1/stock/candle"
    assert seen["headers"]["X-Finnhub-Token"] == "secret-key"
    assert "token" not in seen["params"]
    assert seen["timeout"] == 30.0


@pytest.mark.asyncio
async def test_transport_error_degrades_to_no_status(monkeypatch):
    provider = FinnhubProvider(api_key="key")

    class BrokenClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, headers=None, params=None):
            raise finnhub_module.httpx.ConnectError("boom")

    monkeypatch.setattr(finnhub_module.httpx, "AsyncClient", BrokenClient)

    response = await provider._request_json("/quote", {"symbol": "AAPL"})
    assert response.status is None
    assert await provider.get_profile("AAPL") is None
