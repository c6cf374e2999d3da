"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the ingestion pipelines.

- Pipeline states with strict transition tables
- Run results returned to triggers (CLI, HTTP, jobs)
- Configuration dataclass loaded from the environment

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MARKET_TIMEZONE,
    DEFAULT_MAX_BATCH_OPERATIONS,
    DSE_BASE_URL,
    DSE_LIVE_PRICES_URL,
    EQUITY_TABLE_ID,
    MARKET_SUMMARY_MARKER,
)
from data_ingestion.types import IngestionStatus, LivePriceConfig, MarketSummaryConfig


# ============================================================
# PIPELINE STATES
# ============================================================

class PipelineState(Enum):
    """
    States of one pipeline run.

    Daily:  IDLE -> FETCHING -> PARSING_DATE -> CHECKING_EXISTING
            -> EXTRACTING_ROWS -> DERIVING -> PERSISTING -> DONE
    Live:   IDLE -> FETCHING -> PARSING_FEED -> CHECKING_EXISTING
            -> PERSISTING -> DONE

    FAILED is reachable from every non-terminal state.
    """

    IDLE = "idle"
    FETCHING = "fetching"
    PARSING_DATE = "parsing_date"
    PARSING_FEED = "parsing_feed"
    CHECKING_EXISTING = "checking_existing"
    EXTRACTING_ROWS = "extracting_rows"
    DERIVING = "deriving"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.FAILED)


DAILY_TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.FETCHING, PipelineState.FAILED},
    PipelineState.FETCHING: {PipelineState.PARSING_DATE, PipelineState.FAILED},
    PipelineState.PARSING_DATE: {PipelineState.CHECKING_EXISTING, PipelineState.FAILED},
    PipelineState.CHECKING_EXISTING: {
        PipelineState.EXTRACTING_ROWS,
        PipelineState.DONE,  # already exists
        PipelineState.FAILED,
    },
    PipelineState.EXTRACTING_ROWS: {PipelineState.DERIVING, PipelineState.FAILED},
    PipelineState.DERIVING: {PipelineState.PERSISTING, PipelineState.FAILED},
    PipelineState.PERSISTING: {PipelineState.DONE, PipelineState.FAILED},
    # Terminal states - no transitions out
    PipelineState.DONE: set(),
    PipelineState.FAILED: set(),
}


LIVE_TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.FETCHING, PipelineState.FAILED},
    PipelineState.FETCHING: {PipelineState.PARSING_FEED, PipelineState.FAILED},
    PipelineState.PARSING_FEED: {PipelineState.CHECKING_EXISTING, PipelineState.FAILED},
    PipelineState.CHECKING_EXISTING: {
        PipelineState.PERSISTING,
        PipelineState.DONE,  # already exists
        PipelineState.FAILED,
    },
    PipelineState.PERSISTING: {PipelineState.DONE, PipelineState.FAILED},
    PipelineState.DONE: set(),
    PipelineState.FAILED: set(),
}


# ============================================================
# RESULTS
# ============================================================

@dataclass
class PipelineResult:
    """Result of one pipeline run."""

    success: bool
    status: IngestionStatus
    message: str
    state: PipelineState
    date_tag: Optional[str] = None
    snapshot_id: Optional[str] = None
    stock_count: int = 0
    skipped_rows: int = 0
    batches_committed: int = 0
    failed_state: Optional[PipelineState] = None
    error_type: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "success": self.success,
            "status": self.status.value,
            "message": self.message,
            "state": self.state.value,
            "date_tag": self.date_tag,
            "snapshot_id": self.snapshot_id,
            "stock_count": self.stock_count,
            "skipped_rows": self.skipped_rows,
            "batches_committed": self.batches_committed,
            "failed_state": self.failed_state.value if self.failed_state else None,
            "error_type": self.error_type,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "timings": dict(self.timings),
        }


# ============================================================
# PIPELINE CONFIGURATION
# ============================================================

@dataclass
class PipelineConfig:
    """Configuration for the ingestion pipelines and jobs."""

    # Sources
    base_url: str = DSE_BASE_URL
    live_prices_url: str = DSE_LIVE_PRICES_URL
    table_id: str = EQUITY_TABLE_ID
    date_marker: str = MARKET_SUMMARY_MARKER
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS

    # Storage
    max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS
    database_url: Optional[str] = None

    # Runtime
    market_timezone: str = DEFAULT_MARKET_TIMEZONE
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Load configuration from environment variables."""
        return cls(
            base_url=os.getenv("DSE_BASE_URL", DSE_BASE_URL),
            live_prices_url=os.getenv("DSE_LIVE_PRICES_URL", DSE_LIVE_PRICES_URL),
            table_id=os.getenv("EQUITY_TABLE_ID", EQUITY_TABLE_ID),
            date_marker=os.getenv("MARKET_SUMMARY_MARKER", MARKET_SUMMARY_MARKER),
            fetch_timeout_seconds=float(
                os.getenv("FETCH_TIMEOUT_SECONDS", str(DEFAULT_FETCH_TIMEOUT_SECONDS))
            ),
            max_batch_operations=int(
                os.getenv("MAX_BATCH_OPERATIONS", str(DEFAULT_MAX_BATCH_OPERATIONS))
            ),
            database_url=os.getenv("DATABASE_URL"),
            market_timezone=os.getenv("MARKET_TIMEZONE", DEFAULT_MARKET_TIMEZONE),
            environment=os.getenv("ENVIRONMENT", "development").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.base_url.startswith(("http://", "https://")):
            errors.append("base_url must be an http(s) URL")

        if not self.live_prices_url.startswith(("http://", "https://")):
            errors.append("live_prices_url must be an http(s) URL")

        if not self.table_id:
            errors.append("table_id must not be empty")

        if self.fetch_timeout_seconds <= 0:
            errors.append("fetch_timeout_seconds must be positive")

        if not 2 <= self.max_batch_operations <= DEFAULT_MAX_BATCH_OPERATIONS:
            errors.append(
                f"max_batch_operations must be between 2 and {DEFAULT_MAX_BATCH_OPERATIONS}"
            )

        try:
            ZoneInfo(self.market_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"unknown market_timezone: {self.market_timezone}")

        if self.log_format not in ("json", "text"):
            errors.append("log_format must be json or text")

        return errors

    def market_summary_config(self) -> MarketSummaryConfig:
        return MarketSummaryConfig(
            url=self.base_url,
            timeout_seconds=self.fetch_timeout_seconds,
            table_id=self.table_id,
            date_marker=self.date_marker,
        )

    def live_price_config(self) -> LivePriceConfig:
        return LivePriceConfig(
            url=self.live_prices_url,
            timeout_seconds=self.fetch_timeout_seconds,
        )


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "PipelineState",
    "DAILY_TRANSITIONS",
    "LIVE_TRANSITIONS",
    "PipelineResult",
    "PipelineConfig",
]
