"""
Shared test fixtures.

============================================================
CONTENTS
============================================================
- HTML pages of the exchange homepage (valid and broken)
- Live price feed payloads
- Document stores (in-memory and SQLite in-memory)
- Mock clock pinned in market time
- httpx clients backed by MockTransport

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

import httpx
import pytest

from core.clock import MockClock
from storage.document_store import InMemoryDocumentStore
from storage.sql_document_store import create_sql_document_store


# ============================================================
# HTML PAGES
# ============================================================

CRDB_ROW = ["CRDB", "1200", "1190", "1210", "1220", "1180", "▲ 20",
            "5000000", "120", "1000", "900", "50000", "450"]


def equity_row_html(cells: List[str]) -> str:
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


def homepage(rows: List[List[str]], date_text: str = "February 7, 2026",
             table_id: str = "equity-watch") -> str:
    body = "\n".join(equity_row_html(row) for row in rows)
    return f"""
<html>
<head><title>Dar es Salaam Stock Exchange</title></head>
<body>
<div class="market-summary">
  <h5>Market Summary: {date_text}</h5>
</div>
<table id="{table_id}" class="table">
  <thead>
    <tr><th>Co.</th><th>Open</th><th>Prev</th><th>Close</th><th>High</th><th>Low</th>
        <th>Change</th><th>Turnover</th><th>Deals</th><th>Bid</th><th>Offer</th>
        <th>Volume</th><th>MCAP</th></tr>
  </thead>
  <tbody>
{body}
  </tbody>
</table>
</body>
</html>
"""


CRDB_HOMEPAGE = homepage([CRDB_ROW])

MISSING_TABLE_HOMEPAGE = homepage([CRDB_ROW], table_id="other-table")

TWO_SYMBOL_HOMEPAGE = homepage([
    CRDB_ROW,
    ["NMB", "4,500", "4,480", "4,520", "4,550", "4,470", "▲ 40",
     "15,000,000", "30", "200", "0", "3,300", "2,260"],
    ["Total", "", "", "", "", "", "", "20,000,000", "150", "", "", "", ""],
])


# ============================================================
# LIVE FEED
# ============================================================

LIVE_FEED = {
    "data": [
        {"company": "CRDB", "price": "1,210", "change": "+▲ 20"},
        {"company": "NMB", "price": "4,520", "change": "-▼ -2.48"},
        {"company": "VERTEX-ETF", "price": "0", "change": "0"},
    ]
}


# ============================================================
# CLOCK
# ============================================================

# Tuesday 10 Feb 2026, 11:00 in Dar es Salaam (UTC+3)
TRADING_HOURS_UTC = datetime(2026, 2, 10, 8, 0, tzinfo=timezone.utc)

# Saturday 7 Feb 2026, 20:00 in Dar es Salaam
DAILY_WINDOW_UTC = datetime(2026, 2, 7, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """Mock clock during the trading session."""
    return MockClock(TRADING_HOURS_UTC)


# ============================================================
# STORES
# ============================================================

@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def sql_store():
    """SQL document store on a private in-memory SQLite database."""
    return create_sql_document_store("sqlite://")


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    """Both store implementations, for contract tests."""
    if request.param == "memory":
        return InMemoryDocumentStore()
    return create_sql_document_store("sqlite://")


# ============================================================
# HTTP
# ============================================================

def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def html_responder(html: str, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=html)
    return handler


def json_responder(payload: Dict[str, Any], status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return handler
