from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import QuoteConfig
from .exceptions import PriceUnavailable
from .models import ChartQuote

logger = logging.getLogger(__name__)


class QuoteClient:
    """Fetches the latest daily close for a ticker from the chart API.

    There is no retry here: a failed fetch surfaces as ``PriceUnavailable``
    and the caller decides whether to try again on a later run.
    """

    def __init__(
        self,
        config: QuoteConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or QuoteConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> QuoteClient:
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed QuoteClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("QuoteClient must be used as async context manager")
        return self._client

    def _chart_url(self, ticker: str) -> str:
        return f"{self.config.chart_path}/{quote(ticker, safe='')}"

    async def fetch_quote(self, ticker: str) -> ChartQuote:
        params = {"range": self.config.range, "interval": self.config.interval}

        try:
            response = await self.client.get(self._chart_url(ticker), params=params)
        except httpx.TimeoutException as e:
            raise PriceUnavailable(ticker, f"timed out: {e}") from e
        except httpx.RequestError as e:
            raise PriceUnavailable(ticker, f"network error: {e}") from e

        if not response.is_success:
            raise PriceUnavailable(
                ticker, f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PriceUnavailable(
                ticker, "response is not JSON", status_code=response.status_code
            ) from e

        chart_quote = ChartQuote.from_api(ticker, data)
        if chart_quote is None:
            raise PriceUnavailable(ticker, "no close price", status_code=response.status_code)

        logger.debug(
            f"Fetched {ticker} close={chart_quote.close} from {chart_quote.points} points"
        )
        return chart_quote

    async def fetch_price(self, ticker: str) -> float:
        chart_quote = await self.fetch_quote(ticker)
        return chart_quote.close
