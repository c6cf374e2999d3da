"""
Data Processing - Type Definitions.

============================================================
PURPOSE
============================================================
Typed equity rows and the derived InstrumentRecord.

- TypedRow: one equity table row after numeric typing
- InstrumentRecord: canonical symbol + raw + derived metrics

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable (frozen dataclasses)
- Zero in a raw field means "not reported"
- Derived ratios are 0 when their denominator is 0
- Document keys are camelCase, matching the dashboard

============================================================
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class TypedRow:
    """Equity row with numeric columns parsed; symbol not yet de-aliased."""
    symbol: str
    open: float
    prev_close: float
    close: float
    high: float
    low: float
    change: str
    turnover: float
    deals: float
    outstanding_bid: float
    outstanding_offer: float
    volume: float
    mcap: float


@dataclass(frozen=True)
class InstrumentRecord:
    """One symbol's raw and derived metrics for one trading day."""
    symbol: str

    # Raw fields
    open: float
    prev_close: float
    close: float
    high: float
    low: float
    change: str
    change_value: float
    turnover: float
    deals: float
    outstanding_bid: float
    outstanding_offer: float
    volume: float
    mcap: float

    # Derived fields
    high_low_spread: float
    vol_per_deal: float
    turnover_per_deal: float
    turnover_per_mcap: float
    turnover_percent: float
    change_per_vol: float
    bid_offer_ratio: float

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store (JSON-safe, camelCase)."""
        return {
            "symbol": self.symbol,
            "open": self.open,
            "prevClose": self.prev_close,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "change": self.change,
            "changeValue": self.change_value,
            "turnover": self.turnover,
            "deals": self.deals,
            "outstandingBid": self.outstanding_bid,
            "outstandingOffer": self.outstanding_offer,
            "volume": self.volume,
            "mcap": self.mcap,
            "highLowSpread": self.high_low_spread,
            "volPerDeal": self.vol_per_deal,
            "turnoverPerDeal": self.turnover_per_deal,
            "turnoverPerMcap": self.turnover_per_mcap,
            "turnoverPercent": self.turnover_percent,
            "changePerVol": self.change_per_vol,
            "bidOfferRatio": self.bid_offer_ratio,
        }
