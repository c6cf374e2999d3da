"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the pipeline exception hierarchy.

- One exception family per pipeline stage
- Operators can tell "site structure changed" (DateError)
  apart from "table missing" (TableError)
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
PipelineError (base)
├── FetchError
├── DateError
│   ├── DateNotFoundError
│   └── DateParseError
├── TableError
│   ├── TableNotFoundError
│   ├── TableEndNotFoundError
│   └── NoDataRowsError
├── RowShapeError
└── PersistError

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class PipelineError(Exception):
    """
    Base exception for all pipeline errors.

    All exceptions carry:
    - stage: pipeline stage that raised it
    - context: for debugging
    - recoverable: whether a later scheduled run may succeed
    - timestamp: when the error occurred
    """

    default_stage: str = "unknown"
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        recoverable: Optional[bool] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.stage = stage or self.default_stage
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "stage": self.stage,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return self.message


# ============================================================
# FETCH
# ============================================================

class FetchError(PipelineError):
    """Network failure, timeout or non-2xx response from the source."""

    default_stage = "fetching"


# ============================================================
# DATE
# ============================================================

class DateError(PipelineError):
    """Trading date marker missing or unparsable."""

    default_stage = "parsing_date"
    default_recoverable = False


class DateNotFoundError(DateError):
    """Market Summary date header not present in the page."""

    def __init__(self, message: str = "Date not found in HTML", **kwargs: Any):
        super().__init__(message, **kwargs)


class DateParseError(DateError):
    """Date text found but could not be converted to a date tag."""

    def __init__(self, raw_date: str, **kwargs: Any):
        super().__init__(
            f"Date parse failed: {raw_date}",
            context={"raw_date": raw_date},
            **kwargs,
        )
        self.raw_date = raw_date


# ============================================================
# TABLE
# ============================================================

class TableError(PipelineError):
    """Equity table region could not be extracted."""

    default_stage = "extracting_rows"
    default_recoverable = False


class TableNotFoundError(TableError):
    """Table id marker or its row group is absent."""

    def __init__(self, message: str = "Equity table not found", **kwargs: Any):
        super().__init__(message, **kwargs)


class TableEndNotFoundError(TableError):
    """Row group opened but never closed in the source markup."""

    def __init__(self, message: str = "Table end not found", **kwargs: Any):
        super().__init__(message, **kwargs)


class NoDataRowsError(TableError):
    """Row group contained no row with at least one cell."""

    def __init__(self, message: str = "No data rows found", **kwargs: Any):
        super().__init__(message, **kwargs)


# ============================================================
# ROWS
# ============================================================

class RowShapeError(PipelineError):
    """A table row does not carry the expected number of cells."""

    default_stage = "extracting_rows"

    def __init__(self, cell_count: int, expected: int, row_preview: str = ""):
        super().__init__(
            f"Row has {cell_count} cells, expected {expected}: {row_preview}",
            context={"cell_count": cell_count, "expected": expected},
        )
        self.cell_count = cell_count
        self.expected = expected


# ============================================================
# PERSISTENCE
# ============================================================

class PersistError(PipelineError):
    """Document store write failure at any stage of the batch."""

    default_stage = "persisting"

    def __init__(
        self,
        message: str,
        batches_committed: int = 0,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.batches_committed = batches_committed
        self.context["batches_committed"] = batches_committed


__all__ = [
    "PipelineError",
    "FetchError",
    "DateError",
    "DateNotFoundError",
    "DateParseError",
    "TableError",
    "TableNotFoundError",
    "TableEndNotFoundError",
    "NoDataRowsError",
    "RowShapeError",
    "PersistError",
]
