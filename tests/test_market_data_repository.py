"""
Tests for the market data writer and reader.

============================================================
TEST SCENARIOS
============================================================
1. Persist writes stocks, history, trends, TradingDay, config
2. Second persist for the same day → ALREADY_EXISTS, no writes
3. Small batch limit splits the write; TradingDay is last
4. Concurrent run creating the TradingDay first → ALREADY_EXISTS
5. Store failure → PersistError with batches committed
6. Reader hides days without a TradingDay (stocks, history, symbols)
   and sorts by date

============================================================
"""

from dataclasses import replace
from typing import Iterable
from unittest.mock import patch

import pytest

from core.exceptions import PersistError
from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer
from data_ingestion.types import IngestionStatus
from data_processing.metrics import MetricDeriver
from storage.document_store import InMemoryDocumentStore, WriteKind, WriteOperation
from storage.repositories.exceptions import ConnectionError, TransactionError
from storage.repositories.market_data import (
    MarketDataReader,
    MarketDataWriter,
    app_config_path,
    history_path,
    stock_path,
    trading_day_path,
    trend_path,
)

from conftest import CRDB_ROW


# ============================================================
# FIXTURES
# ============================================================

def make_records(symbols: Iterable[str]):
    row = MarketRowNormalizer().to_typed_row(CRDB_ROW)
    return MetricDeriver().derive([replace(row, symbol=symbol) for symbol in symbols])


@pytest.fixture
def records():
    return make_records(["CRDB", "NMB"])


@pytest.fixture
def writer(store, clock):
    return MarketDataWriter(store, clock=clock)


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that records committed batches."""

    def __init__(self, max_batch_operations: int = 500, fail_on_batch: int = -1) -> None:
        super().__init__(max_batch_operations)
        self.batches = []
        self._fail_on_batch = fail_on_batch

    def commit(self, operations: Iterable[WriteOperation]) -> None:
        ops = list(operations)
        if len(self.batches) == self._fail_on_batch:
            raise TransactionError(self.name, "commit", "commit", "disk full")
        super().commit(ops)
        self.batches.append(ops)


class RacingStore(InMemoryDocumentStore):
    """Another run commits the TradingDay just before our final batch."""

    def __init__(self, date_tag: str) -> None:
        super().__init__()
        self._marker = trading_day_path(date_tag)

    def commit(self, operations: Iterable[WriteOperation]) -> None:
        ops = list(operations)
        if any(op.path == self._marker for op in ops) and not self.exists(self._marker):
            super().commit([WriteOperation(WriteKind.CREATE, self._marker, {"stockCount": 99})])
        super().commit(ops)


# ============================================================
# TEST: WRITER
# ============================================================

class TestMarketDataWriter:
    """Tests for idempotent day persistence."""

    def test_persist_creates_all_documents(self, store, writer, records):
        result = writer.persist("7Feb2026", records)

        assert result.status == IngestionStatus.CREATED
        assert result.stock_count == 2
        assert result.batches_committed == 1
        assert result.operations_written == 2 * 3 + 2

        day = store.get(trading_day_path("7Feb2026"))
        assert day["date"] == "7Feb2026"
        assert day["stockCount"] == 2
        assert day["importedAt"].startswith("2026-02-10T08:00")

        assert store.get(stock_path("7Feb2026", "CRDB"))["close"] == 1210.0
        history = store.get(history_path("NMB", "7Feb2026"))
        assert history["date"] == "7Feb2026"
        assert history["symbol"] == "NMB"
        assert store.get(trend_path("CRDB")) == {"symbol": "CRDB", "lastUpdated": day["importedAt"]}
        assert store.get(app_config_path())["availableDates"] == ["7Feb2026"]

    def test_second_persist_is_already_exists(self, store, writer, records):
        writer.persist("7Feb2026", records)
        commits = store.commit_count

        result = writer.persist("7Feb2026", make_records(["CRDB", "NMB", "TBL"]))

        assert result.status == IngestionStatus.ALREADY_EXISTS
        assert store.commit_count == commits
        assert store.get(trading_day_path("7Feb2026"))["stockCount"] == 2
        assert store.get(stock_path("7Feb2026", "TBL")) is None

    def test_available_dates_accumulate(self, store, writer, records):
        writer.persist("6Feb2026", records)
        writer.persist("7Feb2026", records)
        assert store.get(app_config_path())["availableDates"] == ["6Feb2026", "7Feb2026"]

    def test_small_batches_trading_day_last(self, clock):
        store = RecordingStore(max_batch_operations=4)
        result = MarketDataWriter(store, clock=clock).persist(
            "7Feb2026", make_records(["A", "B", "C"])
        )

        # 9 per-symbol ops in chunks of 4 → 4, 4, 1 (+2 final)
        assert [len(batch) for batch in store.batches] == [4, 4, 3]
        assert result.batches_committed == 3
        assert store.batches[-1][-2].path == trading_day_path("7Feb2026")
        for batch in store.batches[:-1]:
            assert all(op.path != trading_day_path("7Feb2026") for op in batch)

    def test_final_batch_separate_when_full(self, clock):
        store = RecordingStore(max_batch_operations=3)
        MarketDataWriter(store, clock=clock).persist("7Feb2026", make_records(["A"]))
        assert [len(batch) for batch in store.batches] == [3, 2]

    def test_concurrent_trading_day_create(self, clock, records):
        store = RacingStore("7Feb2026")
        result = MarketDataWriter(store, clock=clock).persist("7Feb2026", records)

        assert result.status == IngestionStatus.ALREADY_EXISTS
        assert store.get(trading_day_path("7Feb2026")) == {"stockCount": 99}
        assert store.get(stock_path("7Feb2026", "CRDB")) is None

    def test_failure_reports_committed_batches(self, clock):
        store = RecordingStore(max_batch_operations=4, fail_on_batch=1)
        writer = MarketDataWriter(store, clock=clock)

        with pytest.raises(PersistError) as exc_info:
            writer.persist("7Feb2026", make_records(["A", "B", "C"]))

        assert exc_info.value.batches_committed == 1
        assert exc_info.value.message.startswith("Persist failed:")
        # No commit marker, so the day is still absent and retried in full
        assert writer.trading_day_exists("7Feb2026") is False

    def test_existence_check_failure(self, store, clock):
        writer = MarketDataWriter(store, clock=clock)
        with patch.object(store, "get", side_effect=ConnectionError("store", "get", "refused")):
            with pytest.raises(PersistError) as exc_info:
                writer.trading_day_exists("7Feb2026")
        assert exc_info.value.stage == "checking_existing"

    def test_rejects_tiny_batch_limit(self, clock):
        with pytest.raises(ValueError):
            MarketDataWriter(InMemoryDocumentStore(max_batch_operations=1), clock=clock)


# ============================================================
# TEST: READER
# ============================================================

class TestMarketDataReader:
    """Tests for the read side."""

    @pytest.fixture
    def reader(self, store):
        return MarketDataReader(store)

    def test_available_dates_sorted_by_calendar(self, writer, reader, records):
        for tag in ("10Feb2026", "9Feb2026", "30Jan2026"):
            writer.persist(tag, records)
        assert reader.available_dates() == ["30Jan2026", "9Feb2026", "10Feb2026"]
        assert reader.latest_date() == "10Feb2026"

    def test_uncommitted_day_is_invisible(self, store, reader):
        store.batch() \
            .set(stock_path("7Feb2026", "CRDB"), {"symbol": "CRDB"}) \
            .commit()
        assert reader.available_dates() == []
        assert reader.list_stocks("7Feb2026") == []
        assert reader.latest_date() is None

    def test_failed_persist_leaves_no_visible_history(self, clock, records):
        store = RecordingStore(max_batch_operations=3, fail_on_batch=1)
        with pytest.raises(PersistError):
            MarketDataWriter(store, clock=clock).persist("7Feb2026", records)

        # First batch (CRDB stock, history and trend) did commit
        assert store.get(history_path("CRDB", "7Feb2026")) is not None

        reader = MarketDataReader(store)
        assert reader.available_dates() == []
        assert reader.symbol_history("CRDB") == []
        assert reader.known_symbols() == set()

    def test_history_skips_uncommitted_days(self, store, writer, reader, records):
        writer.persist("6Feb2026", records)
        store.batch() \
            .set(history_path("CRDB", "7Feb2026"), {"symbol": "CRDB", "date": "7Feb2026"}) \
            .commit()

        assert [entry["date"] for entry in reader.symbol_history("CRDB")] == ["6Feb2026"]

    def test_list_stocks_sorted(self, writer, reader):
        writer.persist("7Feb2026", make_records(["NMB", "CRDB", "TBL"]))
        assert [stock["symbol"] for stock in reader.list_stocks("7Feb2026")] == ["CRDB", "NMB", "TBL"]

    def test_symbol_history(self, writer, reader, records):
        for tag in ("10Feb2026", "6Feb2026", "9Feb2026"):
            writer.persist(tag, records)

        history = reader.symbol_history("CRDB")
        assert [entry["date"] for entry in history] == ["6Feb2026", "9Feb2026", "10Feb2026"]

        latest_two = reader.symbol_history("CRDB", limit=2)
        assert [entry["date"] for entry in latest_two] == ["9Feb2026", "10Feb2026"]
        assert reader.symbol_history("UNKNOWN") == []

    def test_known_symbols(self, writer, reader, records):
        assert reader.known_symbols() == set()
        writer.persist("7Feb2026", records)
        assert reader.known_symbols() == {"CRDB", "NMB"}
