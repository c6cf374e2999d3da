"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines the fixed reference data of the market pipeline.

- Source locations and markers on the exchange homepage
- Equity table column layout
- Month abbreviations for date tags
- Canonical symbol registry (aliases and renames)
- Market session windows

============================================================
DESIGN PRINCIPLES
============================================================
- All tables are read-only (MappingProxyType / tuples)
- Components receive these as constructor defaults and
  accept substitutes, so nothing reads them as globals
- No business logic here

============================================================
"""

from datetime import time
from types import MappingProxyType
from typing import Mapping, Tuple


# ============================================================
# SOURCE
# ============================================================

DSE_BASE_URL = "https://dse.co.tz"
DSE_LIVE_PRICES_URL = "https://dse.co.tz/api/get/live/market/prices"

# Element id of the equity watch table on the homepage
EQUITY_TABLE_ID = "equity-watch"

# Header text preceding the trading date ("Market Summary : February 7, 2026")
MARKET_SUMMARY_MARKER = "Market Summary"

DEFAULT_FETCH_TIMEOUT_SECONDS = 30

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


# ============================================================
# EQUITY TABLE LAYOUT
# ============================================================

EQUITY_COLUMNS: Tuple[str, ...] = (
    "symbol",
    "open",
    "prevClose",
    "close",
    "high",
    "low",
    "change",
    "turnover",
    "deals",
    "outstandingBid",
    "outstandingOffer",
    "volume",
    "mcap",
)

EQUITY_COLUMN_COUNT = len(EQUITY_COLUMNS)

# Header/footer artifacts of the source table
SENTINEL_SYMBOLS: Tuple[str, ...] = ("Total", "Co.")

# MCAP column is reported in billions (TZS 'B), turnover in TZS
MCAP_UNIT_SCALE = 1e9


# ============================================================
# DATE TAGS
# ============================================================

MONTH_ABBREVIATIONS: Mapping[str, str] = MappingProxyType({
    "January": "Jan",
    "February": "Feb",
    "March": "Mar",
    "April": "Apr",
    "May": "May",
    "June": "Jun",
    "July": "Jul",
    "August": "Aug",
    "September": "Sep",
    "October": "Oct",
    "November": "Nov",
    "December": "Dec",
})


# ============================================================
# SYMBOL REGISTRY
# ============================================================

# Maps "alias/new name" -> "canonical/old name".
# Add future renames here; history keeps the canonical key.
SYMBOL_MAPPINGS: Mapping[str, str] = MappingProxyType({
    "VERTEX-ETF": "VERTEX ETF",
    "IEACLC-ETF": "IEACLC ETF",
    "ITRUST ETF": "IEACLC ETF",
})


# ============================================================
# MARKET SESSION
# ============================================================

DEFAULT_MARKET_TIMEZONE = "Africa/Dar_es_Salaam"

MARKET_SESSION_OPEN = time(9, 30)
MARKET_SESSION_CLOSE = time(16, 15)

# Automated daily-close runs start at this local hour
DAILY_CLOSE_WINDOW_START_HOUR = 19

# Missing-data warning is raised from this local hour on weekdays
DAILY_CLOSE_ALERT_HOUR = 23


# ============================================================
# STORAGE
# ============================================================

# Maximum operations per atomic batch (Firestore-compatible limit)
DEFAULT_MAX_BATCH_OPERATIONS = 500

MARKET_DATA_COLLECTION = "marketData"
STOCKS_SUBCOLLECTION = "stocks"
TRENDS_COLLECTION = "trends"
HISTORY_SUBCOLLECTION = "history"
CONFIG_COLLECTION = "config"
APP_CONFIG_DOCUMENT = "app"
LIVE_PRICES_COLLECTION = "livePrices"
LIVE_QUOTES_COLLECTION = "liveQuotes"
ALERTS_COLLECTION = "alerts"
NOTIFICATIONS_COLLECTION = "notifications"
