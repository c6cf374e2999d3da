"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All document access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. One repository per domain
2. Store Injection: the document store is injected, not created
3. Explicit Methods: clear method names, no generic 'execute'
4. Exception Handling: store errors wrapped in repository
   exceptions, writers translate them to PersistError

============================================================
REPOSITORIES
============================================================
- market_data.MarketDataWriter / MarketDataReader
- live_prices.LivePriceRepository
- alerts.AlertRepository

Repositories are imported from their modules; this package
only re-exports the exception types, which the store modules
themselves depend on.

============================================================
"""

from storage.repositories.exceptions import (
    RepositoryException,
    RecordNotFoundError,
    DuplicateRecordError,
    ConnectionError,
    TransactionError,
    ValidationError,
)


__all__ = [
    "RepositoryException",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "ConnectionError",
    "TransactionError",
    "ValidationError",
]
