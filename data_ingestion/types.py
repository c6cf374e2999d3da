"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the data ingestion layer.

- Configuration dataclasses
- Ingestion outcome enum
- Transient row and quote types

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Clear typing for all fields
- No business logic
- Serializable for monitoring

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DSE_BASE_URL,
    DSE_LIVE_PRICES_URL,
    EQUITY_TABLE_ID,
    MARKET_SUMMARY_MARKER,
    USER_AGENT,
)


# =============================================================
# ENUMS
# =============================================================

class IngestionSource(str, Enum):
    """Identifiers for ingestion sources."""
    MARKET_SUMMARY = "market_summary"
    LIVE_PRICES = "live_prices"


class IngestionStatus(str, Enum):
    """
    Outcome of a pipeline run.

    ALREADY_EXISTS is a normal outcome, not an error: the
    source only ever shows the current day.
    """
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


# =============================================================
# CONFIGURATION TYPES
# =============================================================

@dataclass(frozen=True)
class CollectorConfig:
    """Base configuration for all collectors."""
    source_name: str
    url: str
    enabled: bool = True
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    user_agent: str = USER_AGENT
    version: str = "1.0.0"


@dataclass(frozen=True)
class MarketSummaryConfig(CollectorConfig):
    """Configuration for the homepage market summary collector."""
    source_name: str = IngestionSource.MARKET_SUMMARY.value
    url: str = DSE_BASE_URL
    table_id: str = EQUITY_TABLE_ID
    date_marker: str = MARKET_SUMMARY_MARKER


@dataclass(frozen=True)
class LivePriceConfig(CollectorConfig):
    """Configuration for the live price feed collector."""
    source_name: str = IngestionSource.LIVE_PRICES.value
    url: str = DSE_LIVE_PRICES_URL


# =============================================================
# TRANSIENT ITEM TYPES
# =============================================================

# One equity table row as extracted: cleaned cell text, in column order.
RawRow = List[str]


@dataclass(frozen=True)
class ExtractedTable:
    """Date header text and equity rows located in one page."""
    date_text: str
    rows: List[RawRow] = field(default_factory=list)


@dataclass(frozen=True)
class LiveQuote:
    """One instrument from the live price feed, typed."""
    symbol: str
    price: float
    change: float
    raw_price: str = ""
    raw_change: str = ""

    def to_document(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change": self.change,
        }
