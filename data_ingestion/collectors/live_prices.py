"""
Data Ingestion - Live Price Collector.

============================================================
RESPONSIBILITY
============================================================
Fetches the intraday live price feed.

    {"data": [{"company": "CRDB", "price": "1,210", "change": "20"}, ...]}

============================================================
DESIGN PRINCIPLES
============================================================
- Returns the raw item list; typing happens in the
  market normalizer
- A body that is not JSON, or has no "data" list, is a
  fetch failure (the endpoint is not serving the feed)

============================================================
"""

from typing import Any, Dict, List

import httpx

from core.exceptions import FetchError
from data_ingestion.collectors.base import BaseCollector
from data_ingestion.types import LivePriceConfig


class LivePriceCollector(BaseCollector[List[Dict[str, Any]]]):
    """Collector for the live market prices JSON feed."""

    def __init__(self, config: LivePriceConfig = LivePriceConfig(), **kwargs) -> None:
        super().__init__(config, **kwargs)

    def decode(self, response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(
                message="Fetch error: live price feed is not valid JSON",
                recoverable=True,
                context={"url": self.url},
                cause=e,
            ) from e

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise FetchError(
                message="Fetch error: live price feed has no data list",
                context={"url": self.url},
            )
        return items
