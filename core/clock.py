"""
Core Module - System Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a testable clock abstraction for the pipelines.

- Import timestamps and snapshot ids come from an injected clock
- Market-session checks are evaluated in the exchange timezone
- Enables deterministic tests for time-gated jobs

============================================================
DESIGN PRINCIPLES
============================================================
- Timestamps are stored in UTC
- Session windows are evaluated in market local time
- Mockable for testing
- Thread-safe

============================================================
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo
import threading

from core.constants import (
    DEFAULT_MARKET_TIMEZONE,
    MARKET_SESSION_CLOSE,
    MARKET_SESSION_OPEN,
)


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for system clock."""

    def __init__(self, market_timezone: str = DEFAULT_MARKET_TIMEZONE) -> None:
        self._market_tz = ZoneInfo(market_timezone)

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def today(self) -> date:
        """Get current UTC date."""
        return self.now().date()

    def market_now(self) -> datetime:
        """Get current time in the exchange timezone."""
        return self.now().astimezone(self._market_tz)

    def market_today(self) -> date:
        """Get the current trading calendar date."""
        return self.market_now().date()

    def is_weekday(self) -> bool:
        """Monday through Friday in market local time."""
        return self.market_now().weekday() < 5

    def is_trading_hours(
        self,
        session_open: time = MARKET_SESSION_OPEN,
        session_close: time = MARKET_SESSION_CLOSE,
    ) -> bool:
        """Check if within the exchange's continuous trading session."""
        if not self.is_weekday():
            return False
        local = self.market_now().time()
        return session_open <= local <= session_close

    def format_iso(self, dt: Optional[datetime] = None) -> str:
        """Format datetime as ISO 8601."""
        dt = dt or self.now()
        return dt.isoformat()


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """
    Production clock using actual system time.

    All times are in UTC.
    """

    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Allows time manipulation for deterministic tests.
    """

    def __init__(
        self,
        initial_time: Optional[datetime] = None,
        market_timezone: str = DEFAULT_MARKET_TIMEZONE,
    ):
        """
        Initialize mock clock.

        Args:
            initial_time: Starting time (defaults to current UTC)
            market_timezone: IANA name of the exchange timezone
        """
        super().__init__(market_timezone)
        self._time = _ensure_utc(initial_time or datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Get current (mocked) datetime."""
        with self._lock:
            return self._time

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            self._time = _ensure_utc(new_time)

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso8601(dt: datetime) -> str:
    """Convert datetime to ISO 8601 string."""
    return _ensure_utc(dt).isoformat()


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "to_iso8601",
]
