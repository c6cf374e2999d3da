"""
Orchestrator - Daily Market Pipeline.

============================================================
RESPONSIBILITY
============================================================
Runs one daily market summary ingestion end to end.

    fetch -> date -> existence check -> rows -> metrics -> persist

- One fetch per run, no retry (the scheduler retries)
- Stage failures become a failed PipelineResult, never raise
- ALREADY_EXISTS is a successful outcome
- Nothing is kept between runs

============================================================
"""

import logging
from typing import List, Optional, Tuple

from core.clock import ClockProtocol, SystemClock
from core.exceptions import (
    DateParseError,
    PipelineError,
    RowShapeError,
)
from data_ingestion.collectors.market_summary import MarketSummaryCollector
from data_ingestion.extractors.table_extractor import TableExtractor
from data_ingestion.normalizers.date_tag import DateTagParser
from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_ingestion.types import IngestionStatus, RawRow
from data_processing.metrics import MetricDeriver
from data_processing.types import TypedRow
from orchestrator.models import DAILY_TRANSITIONS, PipelineConfig, PipelineResult, PipelineState
from orchestrator.state_machine import PipelineStateMachine
from storage.document_store import DocumentStore
from storage.repositories.market_data import MarketDataWriter


logger = logging.getLogger(__name__)


class DailyMarketPipeline:
    """
    Daily close ingestion.

    Collaborators are injected; defaults are built from config.

    Usage:
        pipeline = DailyMarketPipeline(store, config=PipelineConfig.from_env())
        result = await pipeline.run()
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[PipelineConfig] = None,
        collector: Optional[MarketSummaryCollector] = None,
        extractor: Optional[TableExtractor] = None,
        symbol_normalizer: Optional[SymbolNormalizer] = None,
        date_parser: Optional[DateTagParser] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._clock = clock or SystemClock(self._config.market_timezone)
        symbols = symbol_normalizer or SymbolNormalizer()

        self._collector = collector or MarketSummaryCollector(self._config.market_summary_config())
        self._extractor = extractor or TableExtractor(
            table_id=self._config.table_id,
            date_marker=self._config.date_marker,
        )
        self._dates = date_parser or DateTagParser()
        self._rows = MarketRowNormalizer(symbols)
        self._deriver = MetricDeriver(symbols)
        self._writer = MarketDataWriter(store, clock=self._clock)

    @property
    def writer(self) -> MarketDataWriter:
        return self._writer

    async def run(self) -> PipelineResult:
        """
        Execute one run.

        Returns:
            PipelineResult; failures are reported, not raised
        """
        machine = PipelineStateMachine(DAILY_TRANSITIONS, "daily")
        started_at = self._clock.now()
        date_tag: Optional[str] = None
        skipped = 0

        logger.info("=" * 60)
        logger.info("DAILY MARKET PIPELINE START")
        logger.info("=" * 60)

        try:
            machine.transition(PipelineState.FETCHING)
            html = await self._collector.fetch()

            machine.transition(PipelineState.PARSING_DATE)
            date_tag = self._parse_date(html)

            machine.transition(PipelineState.CHECKING_EXISTING)
            if self._writer.trading_day_exists(date_tag):
                machine.transition(PipelineState.DONE, "already exists")
                return self._already_exists(machine, date_tag, started_at)

            machine.transition(PipelineState.EXTRACTING_ROWS)
            typed_rows, skipped = self._type_rows(self._extractor.extract_rows(html))

            machine.transition(PipelineState.DERIVING)
            records = self._deriver.derive(typed_rows)

            machine.transition(PipelineState.PERSISTING)
            persisted = self._writer.persist(date_tag, records)

            machine.transition(PipelineState.DONE)
            if persisted.status == IngestionStatus.ALREADY_EXISTS:
                return self._already_exists(machine, date_tag, started_at)

            message = f'Import complete! Imported {persisted.stock_count} symbols to "{date_tag}".'
            logger.info(message)
            return PipelineResult(
                success=True,
                status=IngestionStatus.CREATED,
                message=message,
                state=machine.state,
                date_tag=date_tag,
                stock_count=persisted.stock_count,
                skipped_rows=skipped,
                batches_committed=persisted.batches_committed,
                started_at=started_at,
                completed_at=self._clock.now(),
                timings=machine.timings,
            )

        except PipelineError as e:
            machine.fail(e.message)
            logger.error(f"Daily pipeline failed in {machine.last_active_state.value}: {e.message}")
            return self._failure(machine, e.message, type(e).__name__, date_tag, skipped, started_at,
                                 batches_committed=getattr(e, "batches_committed", 0))

        except Exception as e:
            machine.fail(str(e))
            logger.exception(f"Unexpected error in daily pipeline: {e}")
            return self._failure(machine, f"Unexpected error: {e}", type(e).__name__, date_tag,
                                 skipped, started_at)

    # =========================================================
    # STAGES
    # =========================================================

    def _parse_date(self, html: str) -> str:
        date_text = self._extractor.extract_date(html)
        date_tag = self._dates.format_date_tag(date_text)
        if date_tag is None:
            raise DateParseError(date_text)
        logger.info(f"Trading date: {date_text} -> {date_tag}")
        return date_tag

    def _type_rows(self, raw_rows: List[RawRow]) -> Tuple[List[TypedRow], int]:
        typed: List[TypedRow] = []
        skipped = 0
        for raw_row in raw_rows:
            try:
                typed.append(self._rows.to_typed_row(raw_row))
            except RowShapeError as e:
                skipped += 1
                logger.warning(f"Skipping row: {e.message}")
        logger.info(f"Extracted {len(typed)} rows ({skipped} skipped)")
        return typed, skipped

    # =========================================================
    # RESULTS
    # =========================================================

    def _already_exists(self, machine: PipelineStateMachine, date_tag: str, started_at) -> PipelineResult:
        message = f"Data for {date_tag} already exists."
        logger.info(message)
        return PipelineResult(
            success=True,
            status=IngestionStatus.ALREADY_EXISTS,
            message=message,
            state=machine.state,
            date_tag=date_tag,
            started_at=started_at,
            completed_at=self._clock.now(),
            timings=machine.timings,
        )

    def _failure(
        self,
        machine: PipelineStateMachine,
        message: str,
        error_type: str,
        date_tag: Optional[str],
        skipped: int,
        started_at,
        batches_committed: int = 0,
    ) -> PipelineResult:
        return PipelineResult(
            success=False,
            status=IngestionStatus.FAILED,
            message=message,
            state=machine.state,
            date_tag=date_tag,
            skipped_rows=skipped,
            batches_committed=batches_committed,
            failed_state=machine.last_active_state,
            error_type=error_type,
            started_at=started_at,
            completed_at=self._clock.now(),
            timings=machine.timings,
        )
