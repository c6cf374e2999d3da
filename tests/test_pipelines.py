"""
Tests for the daily and live ingestion pipelines.

============================================================
TEST SCENARIOS
============================================================
Daily:
1. CRDB homepage → TradingDay with one instrument
2. Second run → "Data for 7Feb2026 already exists."
3. Missing table → "Equity table not found", nothing written
4. HTTP error / unparsable date / short rows / sentinel-only day (stored empty)
5. Persist failure reported with batches committed

Live:
6. Feed stored as one snapshot plus latest quotes
7. Same minute again → ALREADY_EXISTS, quotes still returned
8. Empty feed → failure

============================================================
"""

import httpx
import pytest

from core.exceptions import PersistError
from data_ingestion.collectors.live_prices import LivePriceCollector
from data_ingestion.collectors.market_summary import MarketSummaryCollector
from data_ingestion.types import IngestionStatus
from orchestrator.live_pipeline import LiveQuotePipeline
from orchestrator.models import PipelineConfig, PipelineState
from orchestrator.pipeline import DailyMarketPipeline
from storage.repositories.market_data import MarketDataReader, stock_path, trading_day_path

from conftest import (
    CRDB_HOMEPAGE,
    CRDB_ROW,
    LIVE_FEED,
    MISSING_TABLE_HOMEPAGE,
    homepage,
    html_responder,
    json_responder,
    mock_client,
)


# ============================================================
# FIXTURES
# ============================================================

def daily_pipeline(store, clock, handler) -> DailyMarketPipeline:
    collector = MarketSummaryCollector(client=mock_client(handler))
    return DailyMarketPipeline(store, config=PipelineConfig(), collector=collector, clock=clock)


def live_pipeline(store, clock, handler) -> LiveQuotePipeline:
    collector = LivePriceCollector(client=mock_client(handler))
    return LiveQuotePipeline(store, config=PipelineConfig(), collector=collector, clock=clock)


# ============================================================
# TEST: DAILY PIPELINE
# ============================================================

class TestDailyMarketPipeline:
    """End-to-end runs against a mocked homepage."""

    @pytest.mark.asyncio
    async def test_crdb_end_to_end(self, store, clock):
        result = await daily_pipeline(store, clock, html_responder(CRDB_HOMEPAGE)).run()

        assert result.success is True
        assert result.status == IngestionStatus.CREATED
        assert result.message == 'Import complete! Imported 1 symbols to "7Feb2026".'
        assert result.state == PipelineState.DONE
        assert result.date_tag == "7Feb2026"
        assert result.stock_count == 1

        day = store.get(trading_day_path("7Feb2026"))
        assert day["stockCount"] == 1

        crdb = store.get(stock_path("7Feb2026", "CRDB"))
        assert crdb["close"] == 1210
        assert crdb["changeValue"] == 20
        assert crdb["highLowSpread"] == 40
        assert crdb["volPerDeal"] == pytest.approx(50000 / 120)
        assert crdb["bidOfferRatio"] == pytest.approx(1000 / 900)
        assert crdb["turnoverPercent"] == pytest.approx(100)

    @pytest.mark.asyncio
    async def test_second_run_already_exists(self, store, clock):
        pipeline = daily_pipeline(store, clock, html_responder(CRDB_HOMEPAGE))
        await pipeline.run()
        commits = store.commit_count

        result = await pipeline.run()

        assert result.success is True
        assert result.status == IngestionStatus.ALREADY_EXISTS
        assert result.message == "Data for 7Feb2026 already exists."
        assert store.commit_count == commits

    @pytest.mark.asyncio
    async def test_missing_table_writes_nothing(self, store, clock):
        result = await daily_pipeline(store, clock, html_responder(MISSING_TABLE_HOMEPAGE)).run()

        assert result.success is False
        assert result.status == IngestionStatus.FAILED
        assert result.message == "Equity table not found"
        assert result.failed_state == PipelineState.EXTRACTING_ROWS
        assert result.error_type == "TableNotFoundError"
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_http_error(self, store, clock):
        result = await daily_pipeline(store, clock, html_responder("down", status_code=503)).run()

        assert result.success is False
        assert result.message == "Fetch error: HTTP 503"
        assert result.failed_state == PipelineState.FETCHING

    @pytest.mark.asyncio
    async def test_network_error(self, store, clock):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await daily_pipeline(store, clock, handler).run()

        assert result.success is False
        assert result.message.startswith("Fetch error:")
        assert result.error_type == "FetchError"

    @pytest.mark.asyncio
    async def test_unparsable_date(self, store, clock):
        html = homepage([CRDB_ROW], date_text="Febtember 7, 2026")
        result = await daily_pipeline(store, clock, html_responder(html)).run()

        assert result.success is False
        assert result.message == "Date parse failed: Febtember 7, 2026"
        assert result.failed_state == PipelineState.PARSING_DATE
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_short_rows_skipped(self, store, clock):
        html = homepage([CRDB_ROW, ["BROKEN", "1", "2"]])
        result = await daily_pipeline(store, clock, html_responder(html)).run()

        assert result.success is True
        assert result.stock_count == 1
        assert result.skipped_rows == 1

    @pytest.mark.asyncio
    async def test_only_sentinel_rows_persist_empty_day(self, store, clock):
        html = homepage([["Total"] + [""] * 12])
        result = await daily_pipeline(store, clock, html_responder(html)).run()

        assert result.success is True
        assert result.status == IngestionStatus.CREATED
        assert result.state == PipelineState.DONE
        assert result.stock_count == 0
        assert result.message == 'Import complete! Imported 0 symbols to "7Feb2026".'
        assert store.get(trading_day_path("7Feb2026"))["stockCount"] == 0
        assert MarketDataReader(store).available_dates() == ["7Feb2026"]

    @pytest.mark.asyncio
    async def test_persist_failure(self, store, clock, monkeypatch):
        pipeline = daily_pipeline(store, clock, html_responder(CRDB_HOMEPAGE))

        def failing_persist(date_tag, records):
            raise PersistError("Persist failed: disk full", batches_committed=2)

        monkeypatch.setattr(pipeline.writer, "persist", failing_persist)
        result = await pipeline.run()

        assert result.success is False
        assert result.message == "Persist failed: disk full"
        assert result.batches_committed == 2
        assert result.failed_state == PipelineState.PERSISTING

    @pytest.mark.asyncio
    async def test_result_serializes(self, store, clock):
        result = await daily_pipeline(store, clock, html_responder(CRDB_HOMEPAGE)).run()
        data = result.to_dict()
        assert data["status"] == "created"
        assert data["state"] == "done"
        assert "fetching" in data["timings"]

    @pytest.mark.asyncio
    async def test_readable_after_run(self, store, clock):
        await daily_pipeline(store, clock, html_responder(CRDB_HOMEPAGE)).run()
        reader = MarketDataReader(store)
        assert reader.available_dates() == ["7Feb2026"]
        assert [entry["date"] for entry in reader.symbol_history("CRDB")] == ["7Feb2026"]


# ============================================================
# TEST: LIVE PIPELINE
# ============================================================

class TestLiveQuotePipeline:
    """Runs against a mocked live price feed."""

    @pytest.mark.asyncio
    async def test_snapshot_stored(self, store, clock):
        result = await live_pipeline(store, clock, json_responder(LIVE_FEED)).run()

        assert result.success is True
        assert result.status == IngestionStatus.CREATED
        assert result.snapshot_id == "20260210T0800"
        assert result.stock_count == 3
        assert result.message == "Stored 3 live quotes in snapshot 20260210T0800."

        snapshot = store.get("livePrices/20260210T0800")
        assert snapshot["quoteCount"] == 3
        assert [quote["symbol"] for quote in snapshot["quotes"]] == ["CRDB", "NMB", "VERTEX ETF"]

        latest = store.get("liveQuotes/NMB")
        assert latest["price"] == 4520.0
        assert latest["change"] == pytest.approx(-2.48)
        assert latest["snapshotId"] == "20260210T0800"

    @pytest.mark.asyncio
    async def test_same_minute_already_exists(self, store, clock):
        pipeline = live_pipeline(store, clock, json_responder(LIVE_FEED))
        await pipeline.run()

        result, quotes = await pipeline.collect()

        assert result.success is True
        assert result.status == IngestionStatus.ALREADY_EXISTS
        assert result.message == "Snapshot 20260210T0800 already exists."
        assert len(quotes) == 3

    @pytest.mark.asyncio
    async def test_next_minute_new_snapshot(self, store, clock):
        pipeline = live_pipeline(store, clock, json_responder(LIVE_FEED))
        await pipeline.run()
        clock.advance(minutes=15)

        result = await pipeline.run()

        assert result.status == IngestionStatus.CREATED
        assert result.snapshot_id == "20260210T0815"

    @pytest.mark.asyncio
    async def test_empty_feed(self, store, clock):
        result = await live_pipeline(store, clock, json_responder({"data": []})).run()

        assert result.success is False
        assert result.message == "No market data received from live feed"
        assert result.failed_state == PipelineState.PARSING_FEED
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_malformed_feed(self, store, clock):
        result = await live_pipeline(store, clock, html_responder("<html></html>")).run()

        assert result.success is False
        assert result.message == "Fetch error: live price feed is not valid JSON"
