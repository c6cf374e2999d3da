"""
Data Ingestion - Collectors Package.

This package contains the data collection modules.
Each collector is responsible for a specific data source.

Collectors:
- market_summary: Daily market summary homepage (HTML)
- live_prices: Intraday live price feed (JSON)
"""

from data_ingestion.collectors.base import BaseCollector
from data_ingestion.collectors.market_summary import MarketSummaryCollector
from data_ingestion.collectors.live_prices import LivePriceCollector


__all__ = [
    "BaseCollector",
    "MarketSummaryCollector",
    "LivePriceCollector",
]
