from .client import QuoteClient
from .config import QuoteConfig
from .exceptions import PriceUnavailable, QuoteAPIError
from .models import ChartQuote, extract_closes

__all__ = [
    "QuoteClient",
    "QuoteConfig",
    "QuoteAPIError",
    "PriceUnavailable",
    "ChartQuote",
    "extract_closes",
]
