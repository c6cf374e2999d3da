"""
Data Ingestion - Market Normalizer.

============================================================
RESPONSIBILITY
============================================================
Types raw equity table rows and live feed items.

- RawRow (13 text cells) -> TypedRow
- Live feed item {company, price, change} -> LiveQuote
- Symbols are trimmed here; de-aliasing of table rows
  happens in the metric deriver, live quotes are
  de-aliased immediately

============================================================
DESIGN PRINCIPLES
============================================================
- Input: cleaned cell text from the table extractor
- Output: typed values, no derived calculations
- Short rows are rejected, not padded

============================================================
"""

from typing import Any, Dict, List, Optional

from core.constants import EQUITY_COLUMN_COUNT
from core.exceptions import RowShapeError
from data_ingestion.normalizers.numeric import parse_number, parse_signed_change
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_ingestion.types import LiveQuote, RawRow
from data_processing.types import TypedRow


class MarketRowNormalizer:
    """Converts extracted rows and feed items into typed values."""

    def __init__(self, symbol_normalizer: Optional[SymbolNormalizer] = None) -> None:
        self._symbols = symbol_normalizer or SymbolNormalizer()

    def to_typed_row(self, raw_row: RawRow) -> TypedRow:
        """
        Type one equity table row.

        Raises:
            RowShapeError: If the row has fewer than 13 cells
        """
        if len(raw_row) < EQUITY_COLUMN_COUNT:
            raise RowShapeError(
                cell_count=len(raw_row),
                expected=EQUITY_COLUMN_COUNT,
                row_preview=" | ".join(raw_row)[:80],
            )

        return TypedRow(
            symbol=raw_row[0].strip(),
            open=parse_number(raw_row[1]),
            prev_close=parse_number(raw_row[2]),
            close=parse_number(raw_row[3]),
            high=parse_number(raw_row[4]),
            low=parse_number(raw_row[5]),
            change=raw_row[6],
            turnover=parse_number(raw_row[7]),
            deals=parse_number(raw_row[8]),
            outstanding_bid=parse_number(raw_row[9]),
            outstanding_offer=parse_number(raw_row[10]),
            volume=parse_number(raw_row[11]),
            mcap=parse_number(raw_row[12]),
        )

    def to_live_quote(self, item: Dict[str, Any]) -> Optional[LiveQuote]:
        """
        Type one live feed item.

        Returns:
            LiveQuote, or None when the item has no company name
        """
        symbol = self._symbols.normalize(str(item.get("company") or ""))
        if not symbol:
            return None

        raw_price = str(item.get("price") or "")
        raw_change = str(item.get("change") or "")

        return LiveQuote(
            symbol=symbol,
            price=parse_number(raw_price),
            change=parse_signed_change(raw_change.replace(",", "")),
            raw_price=raw_price,
            raw_change=raw_change,
        )

    def to_live_quotes(self, items: List[Dict[str, Any]]) -> List[LiveQuote]:
        quotes = []
        for item in items:
            if not isinstance(item, dict):
                continue
            quote = self.to_live_quote(item)
            if quote is not None:
                quotes.append(quote)
        return quotes
