"""
Data Processing - Metric Deriver.

============================================================
RESPONSIBILITY
============================================================
Computes per-instrument metrics for one trading day.

Pass 1: day total turnover over real instrument rows.
Pass 2: per row, canonical symbol and derived ratios:

    changeValue     = last signed decimal of change text
    highLowSpread   = high - low
    volPerDeal      = volume / deals
    turnoverPerDeal = turnover / deals
    turnoverPerMcap = turnover / (mcap * 1e9)
    turnoverPercent = turnover / dayTotalTurnover * 100
    changePerVol    = changeValue / volume
    bidOfferRatio   = outstandingBid / outstandingOffer

============================================================
DESIGN PRINCIPLES
============================================================
- Pure: no I/O, cannot fail on typed input
- Every ratio is 0 when its denominator is 0
- Sentinel rows ("Total", "Co.") never count
- Rows whose canonical symbol is empty are dropped

============================================================
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from core.constants import MCAP_UNIT_SCALE, SENTINEL_SYMBOLS
from data_ingestion.normalizers.numeric import parse_signed_change
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_processing.types import InstrumentRecord, TypedRow


logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


class MetricDeriver:
    """Derives InstrumentRecords from one day's typed rows."""

    def __init__(
        self,
        symbol_normalizer: Optional[SymbolNormalizer] = None,
        sentinel_symbols: Iterable[str] = SENTINEL_SYMBOLS,
        mcap_unit_scale: float = MCAP_UNIT_SCALE,
    ) -> None:
        self._symbols = symbol_normalizer or SymbolNormalizer()
        self._sentinels = frozenset(sentinel_symbols)
        self._mcap_scale = mcap_unit_scale

    def is_instrument_row(self, row: TypedRow) -> bool:
        """False for empty symbols and table header/footer artifacts."""
        symbol = row.symbol.strip()
        return bool(symbol) and symbol not in self._sentinels

    def day_total_turnover(self, rows: Sequence[TypedRow]) -> float:
        return sum(row.turnover for row in rows if self.is_instrument_row(row))

    def derive(self, rows: Sequence[TypedRow]) -> List[InstrumentRecord]:
        """
        Derive metrics for every instrument row.

        Args:
            rows: Typed rows of a single trading day

        Returns:
            Records in table order, one per canonical symbol
        """
        total_turnover = self.day_total_turnover(rows)

        records: Dict[str, InstrumentRecord] = {}
        for row in rows:
            if not self.is_instrument_row(row):
                continue

            symbol = self._symbols.normalize(row.symbol)
            if not symbol:
                continue

            if symbol in records:
                logger.warning(
                    f"Duplicate symbol {symbol} (from {row.symbol!r}); keeping the later row"
                )
            records[symbol] = self._derive_row(symbol, row, total_turnover)

        logger.debug(
            f"Derived {len(records)} records from {len(rows)} rows "
            f"(day turnover={total_turnover:,.2f})"
        )
        return list(records.values())

    def _derive_row(
        self,
        symbol: str,
        row: TypedRow,
        total_turnover: float,
    ) -> InstrumentRecord:
        change_value = parse_signed_change(row.change)

        return InstrumentRecord(
            symbol=symbol,
            open=row.open,
            prev_close=row.prev_close,
            close=row.close,
            high=row.high,
            low=row.low,
            change=row.change,
            change_value=change_value,
            turnover=row.turnover,
            deals=row.deals,
            outstanding_bid=row.outstanding_bid,
            outstanding_offer=row.outstanding_offer,
            volume=row.volume,
            mcap=row.mcap,
            high_low_spread=row.high - row.low,
            vol_per_deal=_ratio(row.volume, row.deals),
            turnover_per_deal=_ratio(row.turnover, row.deals),
            turnover_per_mcap=_ratio(row.turnover, row.mcap * self._mcap_scale),
            turnover_percent=_ratio(row.turnover, total_turnover) * 100,
            change_per_vol=_ratio(change_value, row.volume),
            bid_offer_ratio=_ratio(row.outstanding_bid, row.outstanding_offer),
        )
