"""
Data Ingestion Package.

This package handles data collection, extraction and
normalization. No persistence and no derived metrics.

Sub-packages:
- collectors: HTTP fetch of the homepage and live feed
- extractors: Date and equity table extraction from HTML
- normalizers: Numbers, date tags, symbols, typed rows
"""

from data_ingestion.types import (
    IngestionSource,
    IngestionStatus,
    CollectorConfig,
    MarketSummaryConfig,
    LivePriceConfig,
    ExtractedTable,
    LiveQuote,
    RawRow,
)


__all__ = [
    # Enums
    "IngestionSource",
    "IngestionStatus",
    # Configs
    "CollectorConfig",
    "MarketSummaryConfig",
    "LivePriceConfig",
    # Items
    "ExtractedTable",
    "LiveQuote",
    "RawRow",
]
