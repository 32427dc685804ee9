"""Custom exceptions for the quote service."""


class QuoteAPIError(Exception):
    """Base exception for quote API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PriceUnavailable(QuoteAPIError):
    """No usable close price could be obtained for a ticker."""

    def __init__(self, ticker: str, message: str, status_code: int | None = None):
        super().__init__(f"Price unavailable for {ticker}: {message}", status_code)
        self.ticker = ticker
