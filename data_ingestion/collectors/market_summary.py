"""
Data Ingestion - Market Summary Collector.

============================================================
RESPONSIBILITY
============================================================
Fetches the exchange homepage that carries the
"Market Summary" date header and the equity watch table.

============================================================
DATA FLOW
============================================================
1. GET the homepage
2. Return the decoded HTML text
3. TableExtractor locates the date and rows

============================================================
"""

import httpx

from data_ingestion.collectors.base import BaseCollector
from data_ingestion.types import MarketSummaryConfig


class MarketSummaryCollector(BaseCollector[str]):
    """Collector for the daily market summary page."""

    def __init__(self, config: MarketSummaryConfig = MarketSummaryConfig(), **kwargs) -> None:
        super().__init__(config, **kwargs)

    def decode(self, response: httpx.Response) -> str:
        return response.text
