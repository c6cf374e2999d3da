"""
Market Data Repository.

============================================================
PURPOSE
============================================================
Write and read side of the daily market data documents.

    marketData/{dateTag}                   TradingDay
    marketData/{dateTag}/stocks/{symbol}   InstrumentRecord
    trends/{symbol}                        {symbol, lastUpdated}
    trends/{symbol}/history/{dateTag}      InstrumentRecord + date
    config/app                             {availableDates, lastUpdated}

============================================================
WRITE ORDERING
============================================================
Per-symbol documents are written first, in batches of at most
max_batch_operations. The TradingDay document is written LAST,
with create-if-absent semantics, together with the config/app
merge. The TradingDay is therefore a commit marker:

- A day without its TradingDay is invisible to readers and to
  the existence check, and is rewritten in full by the next run
- A concurrent run loses the create and reports ALREADY_EXISTS

============================================================
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Set

from core.clock import ClockProtocol, SystemClock
from core.constants import (
    APP_CONFIG_DOCUMENT,
    CONFIG_COLLECTION,
    HISTORY_SUBCOLLECTION,
    MARKET_DATA_COLLECTION,
    STOCKS_SUBCOLLECTION,
    TRENDS_COLLECTION,
)
from core.exceptions import PersistError
from data_ingestion.normalizers.date_tag import DateTagParser
from data_ingestion.types import IngestionStatus
from data_processing.types import InstrumentRecord
from storage.document_store import (
    ArrayUnion,
    DocumentStore,
    WriteKind,
    WriteOperation,
    document_path,
)
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import DuplicateRecordError, RepositoryException


# ============================================================
# PATHS
# ============================================================

def trading_day_path(date_tag: str) -> str:
    return document_path(MARKET_DATA_COLLECTION, date_tag)


def stock_path(date_tag: str, symbol: str) -> str:
    return document_path(MARKET_DATA_COLLECTION, date_tag, STOCKS_SUBCOLLECTION, symbol)


def trend_path(symbol: str) -> str:
    return document_path(TRENDS_COLLECTION, symbol)


def history_path(symbol: str, date_tag: str) -> str:
    return document_path(TRENDS_COLLECTION, symbol, HISTORY_SUBCOLLECTION, date_tag)


def app_config_path() -> str:
    return document_path(CONFIG_COLLECTION, APP_CONFIG_DOCUMENT)


# ============================================================
# WRITER
# ============================================================

@dataclass(frozen=True)
class PersistResult:
    """Outcome of one persist call."""
    status: IngestionStatus
    date_tag: str
    stock_count: int = 0
    batches_committed: int = 0
    operations_written: int = 0


class MarketDataWriter(BaseRepository):
    """
    Idempotent writer for one trading day.

    Usage:
        writer = MarketDataWriter(store)
        result = writer.persist("7Feb2026", records)
    """

    # Final batch holds the TradingDay create and the config/app merge
    FINAL_BATCH_OPERATIONS = 2

    def __init__(self, store: DocumentStore, clock: Optional[ClockProtocol] = None) -> None:
        super().__init__(store, "MarketDataWriter")
        if store.max_batch_operations < self.FINAL_BATCH_OPERATIONS:
            raise ValueError(
                f"store batch limit {store.max_batch_operations} is below "
                f"{self.FINAL_BATCH_OPERATIONS}"
            )
        self._clock = clock or SystemClock()

    def trading_day_exists(self, date_tag: str) -> bool:
        """
        Check for the TradingDay commit marker.

        Raises:
            PersistError: if the store cannot be read
        """
        try:
            return self._store.exists(trading_day_path(date_tag))
        except RepositoryException as e:
            self._log_error(e, "trading_day_exists", {"date_tag": date_tag})
            raise PersistError(
                f"Existence check failed: {e.message}",
                stage="checking_existing",
                context={"date_tag": date_tag},
                cause=e,
            ) from e

    def persist(self, date_tag: str, records: Sequence[InstrumentRecord]) -> PersistResult:
        """
        Write one trading day unless it already exists.

        Returns:
            PersistResult with CREATED or ALREADY_EXISTS

        Raises:
            PersistError: on any store failure; carries the number of
                batches committed before the failure
        """
        if self.trading_day_exists(date_tag):
            self._logger.info(f"Trading day {date_tag} already exists, skipping write")
            return PersistResult(status=IngestionStatus.ALREADY_EXISTS, date_tag=date_tag)

        imported_at = self._clock.format_iso()
        try:
            batches = self._build_batches(date_tag, records, imported_at)
        except RepositoryException as e:
            raise PersistError(
                f"Persist failed: {e.message}",
                context={"date_tag": date_tag},
                cause=e,
            ) from e

        committed = 0
        written = 0
        for index, batch in enumerate(batches):
            is_final = index == len(batches) - 1
            try:
                self._store.commit(batch)
            except DuplicateRecordError as e:
                if is_final and e.path == trading_day_path(date_tag):
                    self._logger.warning(
                        f"Trading day {date_tag} was created by a concurrent run"
                    )
                    return PersistResult(
                        status=IngestionStatus.ALREADY_EXISTS,
                        date_tag=date_tag,
                        batches_committed=committed,
                        operations_written=written,
                    )
                self._log_error(e, "persist", {"date_tag": date_tag, "batch": index})
                raise PersistError(
                    f"Persist failed: {e.message}",
                    batches_committed=committed,
                    context={"date_tag": date_tag},
                    cause=e,
                ) from e
            except RepositoryException as e:
                self._log_error(e, "persist", {"date_tag": date_tag, "batch": index})
                raise PersistError(
                    f"Persist failed: {e.message}",
                    batches_committed=committed,
                    context={"date_tag": date_tag},
                    cause=e,
                ) from e
            committed += 1
            written += len(batch)

        self._log_written(records)
        return PersistResult(
            status=IngestionStatus.CREATED,
            date_tag=date_tag,
            stock_count=len(records),
            batches_committed=committed,
            operations_written=written,
        )

    def _build_batches(
        self,
        date_tag: str,
        records: Sequence[InstrumentRecord],
        imported_at: str,
    ) -> List[List[WriteOperation]]:
        operations: List[WriteOperation] = []
        for record in records:
            body = record.to_document()
            operations.append(WriteOperation(
                WriteKind.SET, stock_path(date_tag, record.symbol), body,
            ))
            operations.append(WriteOperation(
                WriteKind.SET, history_path(record.symbol, date_tag), {**body, "date": date_tag},
            ))
            operations.append(WriteOperation(
                WriteKind.MERGE, trend_path(record.symbol),
                {"symbol": record.symbol, "lastUpdated": imported_at},
            ))

        final = [
            WriteOperation(WriteKind.CREATE, trading_day_path(date_tag), {
                "date": date_tag,
                "importedAt": imported_at,
                "stockCount": len(records),
            }),
            WriteOperation(WriteKind.MERGE, app_config_path(), {
                "availableDates": ArrayUnion(date_tag),
                "lastUpdated": imported_at,
            }),
        ]

        batches = self._chunk(operations)
        limit = self._store.max_batch_operations
        if batches and len(batches[-1]) + len(final) <= limit:
            batches[-1].extend(final)
        else:
            batches.append(final)
        return batches

    def _log_written(self, records: Sequence[InstrumentRecord]) -> None:
        count = len(records)
        self._logger.info(f"Persist {STOCKS_SUBCOLLECTION}: written={count}")
        self._logger.info(f"Persist {HISTORY_SUBCOLLECTION}: written={count}")
        self._logger.info(f"Persist {TRENDS_COLLECTION}: written={count}")
        self._logger.info(f"Persist {MARKET_DATA_COLLECTION}: written=1")


# ============================================================
# READER
# ============================================================

class MarketDataReader(BaseRepository):
    """
    Read side for dashboards and jobs.

    Only trading days with their TradingDay document are visible.
    """

    def __init__(self, store: DocumentStore, date_parser: Optional[DateTagParser] = None) -> None:
        super().__init__(store, "MarketDataReader")
        self._dates = date_parser or DateTagParser()

    def _sort_key(self, date_tag: str) -> date:
        return self._dates.parse_date_tag(date_tag) or date.min

    def available_dates(self) -> List[str]:
        """Date tags with a TradingDay, oldest first."""
        config = self._get(app_config_path()) or {}
        tags = set(config.get("availableDates", []))
        tags |= set(self._list(MARKET_DATA_COLLECTION))
        committed = [tag for tag in tags if self._store.exists(trading_day_path(tag))]
        return sorted(committed, key=self._sort_key)

    def latest_date(self) -> Optional[str]:
        dates = self.available_dates()
        return dates[-1] if dates else None

    def get_trading_day(self, date_tag: str) -> Optional[Dict[str, Any]]:
        return self._get(trading_day_path(date_tag))

    def list_stocks(self, date_tag: str) -> List[Dict[str, Any]]:
        """Instrument documents for one committed day, sorted by symbol."""
        if self.get_trading_day(date_tag) is None:
            return []
        stocks = self._list(f"{trading_day_path(date_tag)}/{STOCKS_SUBCOLLECTION}")
        return [stocks[symbol] for symbol in sorted(stocks)]

    def symbol_history(self, symbol: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """History entries of committed days for one symbol, oldest first; limit keeps the newest."""
        entries = self._list(f"{trend_path(symbol)}/{HISTORY_SUBCOLLECTION}")
        committed = set(self.available_dates())
        ordered = [
            entries[tag] for tag in sorted(entries, key=self._sort_key)
            if tag in committed
        ]
        if limit is not None:
            ordered = ordered[-limit:] if limit > 0 else []
        return ordered

    def known_symbols(self) -> Set[str]:
        """Symbols stored under at least one committed trading day."""
        symbols: Set[str] = set()
        for date_tag in self.available_dates():
            symbols |= set(self._list(f"{trading_day_path(date_tag)}/{STOCKS_SUBCOLLECTION}"))
        return symbols
