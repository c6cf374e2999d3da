"""
Data Ingestion - Normalizers Package.

This package contains the text-to-value normalization modules.

Normalizers:
- numeric: Locale-formatted numbers and signed change cells
- date_tag: Long-form dates to compact DateTags and back
- symbol: Alias/rename lookup to canonical symbols
- market_normalizer: Raw table rows and feed items to typed values
"""

from data_ingestion.normalizers.numeric import parse_number, parse_signed_change
from data_ingestion.normalizers.date_tag import DateTagParser
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer


__all__ = [
    "parse_number",
    "parse_signed_change",
    "DateTagParser",
    "SymbolNormalizer",
    "MarketRowNormalizer",
]
