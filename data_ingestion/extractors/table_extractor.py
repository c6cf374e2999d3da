"""
Data Ingestion - Table Extractor.

============================================================
RESPONSIBILITY
============================================================
Locates the trading date and the equity table in the
exchange homepage and yields cleaned cell text.

- Date: text following the "Market Summary" header,
  formatted "Month Day, Year"
- Table: element with the table id, then its first row
  group (tbody); direct rows and their data cells
- Cell text: tags stripped, whitespace collapsed, trimmed

============================================================
DESIGN PRINCIPLES
============================================================
- Pure function over the HTML string, no I/O
- Parsed with a real HTML parser; the marker-based location
  (find by id, take the next row group) is the contract
- No numeric conversion - that's for the normalizers
- Each failure has its own error type for diagnosis

============================================================
"""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from core.constants import EQUITY_TABLE_ID, MARKET_SUMMARY_MARKER
from core.exceptions import (
    DateNotFoundError,
    NoDataRowsError,
    TableEndNotFoundError,
    TableNotFoundError,
)
from data_ingestion.types import ExtractedTable, RawRow


logger = logging.getLogger(__name__)

_LONG_DATE = re.compile(r"([A-Za-z]+\s+\d{1,2},\s+\d{4})")

_WHITESPACE = re.compile(r"\s+")

# Number of text nodes after the marker searched for the date
_DATE_LOOKAHEAD = 12


def clean_cell_text(cell: Tag) -> str:
    """Cell text with embedded tags removed and whitespace collapsed."""
    return _WHITESPACE.sub(" ", cell.get_text()).strip()


class TableExtractor:
    """Extracts the trading date and equity rows from the homepage."""

    def __init__(
        self,
        table_id: str = EQUITY_TABLE_ID,
        date_marker: str = MARKET_SUMMARY_MARKER,
        parser: str = "html.parser",
    ) -> None:
        self._table_id = table_id
        self._date_marker = date_marker
        self._marker_pattern = re.compile(re.escape(date_marker), re.IGNORECASE)
        self._parser = parser

    # =========================================================
    # PUBLIC API
    # =========================================================

    def extract_table(self, html: str) -> ExtractedTable:
        """
        Extract both the date header text and the equity rows.

        Raises:
            DateNotFoundError, TableNotFoundError,
            TableEndNotFoundError, NoDataRowsError
        """
        soup = self._parse(html)
        return ExtractedTable(
            date_text=self._find_date(soup),
            rows=self._find_rows(soup, html),
        )

    def extract_date(self, html: str) -> str:
        """
        Find the long-form trading date, e.g. "February 7, 2026".

        Raises:
            DateNotFoundError: If the marker or the date is absent
        """
        return self._find_date(self._parse(html))

    def extract_rows(self, html: str) -> List[RawRow]:
        """
        Extract the equity table rows as lists of cleaned cell text.

        Raises:
            TableNotFoundError: Table id or row group absent
            TableEndNotFoundError: Row group never closed
            NoDataRowsError: No row with at least one cell
        """
        return self._find_rows(self._parse(html), html)

    # =========================================================
    # DATE
    # =========================================================

    def _find_date(self, soup: BeautifulSoup) -> str:
        for marker in soup.find_all(string=self._marker_pattern):
            date_text = self._date_near(marker)
            if date_text:
                logger.debug(f"Found market summary date: {date_text}")
                return date_text

        raise DateNotFoundError()

    def _date_near(self, marker: NavigableString) -> Optional[str]:
        # Same node first ("Market Summary: February 7, 2026")
        tail = self._marker_pattern.split(str(marker), maxsplit=1)[-1]
        match = _LONG_DATE.search(tail)
        if match:
            return _WHITESPACE.sub(" ", match.group(1))

        # Then the sibling header ("<h5>Market Summary :</h5><h5>February 7, 2026</h5>")
        for text in marker.find_all_next(string=True, limit=_DATE_LOOKAHEAD):
            if not text.strip():
                continue
            match = _LONG_DATE.search(str(text))
            if match:
                return _WHITESPACE.sub(" ", match.group(1))
            if self._marker_pattern.search(str(text)):
                break
        return None

    # =========================================================
    # ROWS
    # =========================================================

    def _find_rows(self, soup: BeautifulSoup, html: str) -> List[RawRow]:
        anchor = soup.find(id=self._table_id)
        if anchor is None:
            raise TableNotFoundError()

        row_group = anchor if anchor.name == "tbody" else anchor.find("tbody")
        if row_group is None:
            row_group = anchor.find_next("tbody")
        if row_group is None:
            raise TableNotFoundError()

        if not self._row_group_closed(html):
            raise TableEndNotFoundError()

        rows: List[RawRow] = []
        for tr in row_group.find_all("tr", recursive=False):
            cells = [clean_cell_text(td) for td in tr.find_all("td", recursive=False)]
            if cells:
                rows.append(cells)

        if not rows:
            raise NoDataRowsError()

        logger.debug(f"Extracted {len(rows)} rows from #{self._table_id}")
        return rows

    def _row_group_closed(self, html: str) -> bool:
        """
        The parser closes dangling tags implicitly, so a truncated
        page is detected on the source markup after the id marker.
        """
        id_match = re.search(
            r"""id\s*=\s*["']?""" + re.escape(self._table_id), html, re.IGNORECASE
        )
        if id_match is None:
            return False
        return re.search(r"</tbody\s*>", html[id_match.end():], re.IGNORECASE) is not None

    def _parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", self._parser)
