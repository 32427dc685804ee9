from pydantic import BaseModel


class QuoteConfig(BaseModel):
    """Configuration for the chart quote client."""

    base_url: str = "https://query1.finance.yahoo.com"
    chart_path: str = "/v8/finance/chart"
    range: str = "5d"
    interval: str = "1d"
    timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0 (compatible; agora-settlement/0.1)"
