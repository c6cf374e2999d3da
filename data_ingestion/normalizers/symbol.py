"""
Data Ingestion - Symbol Normalizer.

Maps alias and renamed ticker strings to the canonical symbol
under which history is stored ("VERTEX-ETF" -> "VERTEX ETF").
"""

from typing import Mapping

from core.constants import SYMBOL_MAPPINGS


class SymbolNormalizer:
    """Static alias lookup; unmapped input is only trimmed."""

    def __init__(self, mappings: Mapping[str, str] = SYMBOL_MAPPINGS) -> None:
        self._mappings = mappings

    @property
    def mappings(self) -> Mapping[str, str]:
        return self._mappings

    def normalize(self, raw: str) -> str:
        symbol = (raw or "").strip()
        return self._mappings.get(symbol, symbol)

    def is_alias(self, raw: str) -> bool:
        return (raw or "").strip() in self._mappings
