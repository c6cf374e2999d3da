"""
Data Ingestion - Date Tag Parser.

============================================================
RESPONSIBILITY
============================================================
Converts the homepage's long-form date into the compact
DateTag used as the TradingDay key, and back.

    "February 7, 2026"  ->  "7Feb2026"
    "7Feb2026"          ->  date(2026, 2, 7)
    "7Feb2026"          ->  "7 Feb 2026" (display form)

An unparsable long date yields None. Callers treat that as a
hard pipeline failure, never as a skippable row.

============================================================
"""

import re
from datetime import date
from typing import Dict, Mapping, Optional

from core.constants import MONTH_ABBREVIATIONS


_DATE_TAG = re.compile(r"^(\d{1,2})([A-Za-z]{3})(\d{4})$")


class DateTagParser:
    """Formats and parses DateTags using an injected month table."""

    def __init__(self, month_abbreviations: Mapping[str, str] = MONTH_ABBREVIATIONS) -> None:
        self._months = month_abbreviations
        self._month_numbers: Dict[str, int] = {
            abbr: index
            for index, abbr in enumerate(month_abbreviations.values(), start=1)
        }

    def format_date_tag(self, long_date: Optional[str]) -> Optional[str]:
        """
        Format "Month Day, Year" as "{day}{Mon}{year}".

        Returns:
            The tag, or None if the text is not exactly three
            tokens or the month name is unknown
        """
        if not long_date:
            return None

        parts = long_date.replace(",", "").split()
        if len(parts) != 3:
            return None

        month_name, day, year = parts
        month = self._months.get(month_name)
        if month is None:
            return None

        return f"{day}{month}{year}"

    def parse_date_tag(self, tag: str) -> Optional[date]:
        """Convert a DateTag back to a calendar date, or None."""
        match = _DATE_TAG.match(tag or "")
        if not match:
            return None

        day, month_abbr, year = match.groups()
        month = self._month_numbers.get(month_abbr)
        if month is None:
            return None

        try:
            return date(int(year), month, int(day))
        except ValueError:
            return None

    def tag_for(self, value: date) -> str:
        """DateTag for a calendar date (e.g. today's tag)."""
        month_abbr = list(self._months.values())[value.month - 1]
        return f"{value.day}{month_abbr}{value.year}"

    @staticmethod
    def format_display(tag: str) -> str:
        """"26Jan2026" -> "26 Jan 2026"; other strings unchanged."""
        match = _DATE_TAG.match(tag or "")
        if not match:
            return tag
        return " ".join(match.groups())
