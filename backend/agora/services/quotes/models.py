from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel


def _is_price(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def extract_closes(data: Any) -> list[float]:
    """Return the numeric daily closes of a chart payload, oldest first.

    Missing levels of the ``chart.result[0].indicators.quote[0].close`` path
    yield an empty list; ``None`` and non-numeric entries are dropped.
    """
    try:
        result = data["chart"]["result"][0]
        closes = result["indicators"]["quote"][0]["close"]
    except (KeyError, IndexError, TypeError):
        return []
    if not isinstance(closes, list):
        return []
    return [float(value) for value in closes if _is_price(value)]


class ChartQuote(BaseModel):
    ticker: str
    close: float
    currency: str | None = None
    exchange: str | None = None
    market_time: datetime | None = None
    points: int = 0

    @classmethod
    def from_api(cls, ticker: str, data: Any) -> ChartQuote | None:
        closes = extract_closes(data)
        if not closes:
            return None

        # Metadata is optional; a malformed block never hides a usable close
        meta = data["chart"]["result"][0].get("meta")
        if not isinstance(meta, dict):
            meta = {}

        market_time = None
        timestamp = meta.get("regularMarketTime")
        if isinstance(timestamp, int) and not isinstance(timestamp, bool):
            try:
                market_time = datetime.fromtimestamp(timestamp, tz=timezone.utc)
            except (OverflowError, ValueError, OSError):
                market_time = None

        currency = meta.get("currency")
        exchange = meta.get("exchangeName")

        return cls(
            ticker=ticker,
            close=closes[-1],
            currency=currency if isinstance(currency, str) else None,
            exchange=exchange if isinstance(exchange, str) else None,
            market_time=market_time,
            points=len(closes),
        )
