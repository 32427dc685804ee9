"""Tests for the chart quote client."""

import asyncio

import httpx
import pytest

from agora.services.quotes import PriceUnavailable, QuoteClient, extract_closes
from conftest import QuoteServer, chart_payload


def _fetch(client: QuoteClient, ticker: str) -> float:
    async def run() -> float:
        async with client:
            return await client.fetch_price(ticker)

    return asyncio.run(run())


def test_extract_closes_skips_missing_and_non_numeric() -> None:
    payload = chart_payload(101.5, None, "n/a", True, 102.25, None)
    assert extract_closes(payload) == [101.5, 102.25]


def test_extract_closes_handles_absent_series() -> None:
    assert extract_closes({}) == []
    assert extract_closes({"chart": {"result": None}}) == []
    assert extract_closes({"chart": {"result": []}}) == []
    assert extract_closes({"chart": {"result": [{"indicators": {"quote": []}}]}}) == []
    assert extract_closes({"chart": {"result": [{"indicators": {"quote": [{"close": None}]}}]}}) == []


def test_fetch_price_returns_last_numeric_close(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=chart_payload(98.0, 99.5, 101.0, None))

    assert _fetch(quote_client(handler), "AAPL") == 101.0


def test_fetch_price_requests_five_day_daily_series(quote_client) -> None:
    server = QuoteServer({"^GSPC": 5000.0})

    assert _fetch(quote_client(server), "^GSPC") == 5000.0

    request = server.requests[0]
    assert request.method == "GET"
    assert request.url.raw_path.startswith(b"/v8/finance/chart/%5EGSPC")
    assert request.url.params["range"] == "5d"
    assert request.url.params["interval"] == "1d"
    assert "agora-settlement" in request.headers["user-agent"]


def test_http_error_is_price_unavailable(quote_client) -> None:
    server = QuoteServer({}, statuses={"AAPL": 500})

    with pytest.raises(PriceUnavailable) as exc_info:
        _fetch(quote_client(server), "AAPL")

    assert exc_info.value.status_code == 500
    assert exc_info.value.ticker == "AAPL"


def test_network_error_is_price_unavailable(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PriceUnavailable, match="network error"):
        _fetch(quote_client(handler), "AAPL")


def test_timeout_is_price_unavailable(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(PriceUnavailable, match="timed out"):
        _fetch(quote_client(handler), "AAPL")


def test_series_without_numeric_close_is_price_unavailable(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=chart_payload(None, None))

    with pytest.raises(PriceUnavailable, match="no close price"):
        _fetch(quote_client(handler), "AAPL")


def test_non_json_body_is_price_unavailable(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(PriceUnavailable, match="not JSON"):
        _fetch(quote_client(handler), "AAPL")


def test_fetch_quote_exposes_metadata(quote_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=chart_payload(10.0, 11.0, currency="EUR"))

    async def run():
        async with quote_client(handler) as client:
            return await client.fetch_quote("AIR.PA")

    chart_quote = asyncio.run(run())
    assert chart_quote.close == 11.0
    assert chart_quote.currency == "EUR"
    assert chart_quote.points == 2
    assert chart_quote.market_time is not None


def test_client_requires_context_manager() -> None:
    with pytest.raises(RuntimeError):
        asyncio.run(QuoteClient().fetch_price("AAPL"))


def test_out_of_range_market_time_keeps_close(quote_client) -> None:
    payload = chart_payload(101.0)
    payload["chart"]["result"][0]["meta"] = {"regularMarketTime": 10**13, "currency": "USD"}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async def run():
        async with quote_client(handler) as client:
            return await client.fetch_quote("AAPL")

    chart_quote = asyncio.run(run())
    assert chart_quote.close == 101.0
    assert chart_quote.market_time is None
    assert chart_quote.currency == "USD"


def test_malformed_meta_is_ignored(quote_client) -> None:
    payload = chart_payload(101.0)
    payload["chart"]["result"][0]["meta"] = ["x"]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    assert _fetch(quote_client(handler), "AAPL") == 101.0
