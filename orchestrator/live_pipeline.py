"""
Orchestrator - Live Quote Pipeline.

============================================================
RESPONSIBILITY
============================================================
Fetches the intraday live price feed and stores a snapshot.

    fetch -> parse feed -> existence check -> persist

- Snapshot id is the UTC minute of the run
- A snapshot already written for that minute is ALREADY_EXISTS
- No table extraction and no derived metrics

============================================================
"""

import logging
from typing import List, Optional, Tuple

from core.clock import ClockProtocol, SystemClock
from core.exceptions import FetchError, PipelineError
from data_ingestion.collectors.live_prices import LivePriceCollector
from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_ingestion.types import IngestionStatus, LiveQuote
from orchestrator.models import LIVE_TRANSITIONS, PipelineConfig, PipelineResult, PipelineState
from orchestrator.state_machine import PipelineStateMachine
from storage.document_store import DocumentStore
from storage.repositories.live_prices import LivePriceRepository


logger = logging.getLogger(__name__)


class LiveQuotePipeline:
    """Intraday live feed ingestion."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[PipelineConfig] = None,
        collector: Optional[LivePriceCollector] = None,
        symbol_normalizer: Optional[SymbolNormalizer] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._clock = clock or SystemClock(self._config.market_timezone)
        self._collector = collector or LivePriceCollector(self._config.live_price_config())
        self._normalizer = MarketRowNormalizer(symbol_normalizer or SymbolNormalizer())
        self._repository = LivePriceRepository(store, clock=self._clock)

    async def run(self) -> PipelineResult:
        result, _ = await self.collect()
        return result

    async def collect(self) -> Tuple[PipelineResult, List[LiveQuote]]:
        """
        Execute one run and also return the parsed quotes.

        Quotes are returned even when the snapshot already existed,
        so callers can evaluate alerts on every run.
        """
        machine = PipelineStateMachine(LIVE_TRANSITIONS, "live")
        started_at = self._clock.now()
        quotes: List[LiveQuote] = []
        snapshot_id: Optional[str] = None

        try:
            machine.transition(PipelineState.FETCHING)
            items = await self._collector.fetch()

            machine.transition(PipelineState.PARSING_FEED)
            quotes = self._normalizer.to_live_quotes(items)
            if not quotes:
                raise FetchError(
                    "No market data received from live feed",
                    stage=PipelineState.PARSING_FEED.value,
                )
            logger.info(f"Fetched prices for {len(quotes)} symbols")

            machine.transition(PipelineState.CHECKING_EXISTING)
            snapshot_id = self._repository.current_snapshot_id()
            if self._repository.snapshot_exists(snapshot_id):
                machine.transition(PipelineState.DONE, "already exists")
                return self._result(machine, IngestionStatus.ALREADY_EXISTS,
                                    f"Snapshot {snapshot_id} already exists.",
                                    snapshot_id, 0, started_at), quotes

            machine.transition(PipelineState.PERSISTING)
            saved = self._repository.save_snapshot(snapshot_id, quotes)

            machine.transition(PipelineState.DONE)
            if saved.status == IngestionStatus.ALREADY_EXISTS:
                message = f"Snapshot {snapshot_id} already exists."
            else:
                message = f"Stored {saved.quote_count} live quotes in snapshot {snapshot_id}."
            logger.info(message)
            return self._result(machine, saved.status, message, snapshot_id,
                                saved.quote_count, started_at), quotes

        except PipelineError as e:
            machine.fail(e.message)
            logger.error(f"Live pipeline failed in {machine.last_active_state.value}: {e.message}")
            return self._failure(machine, e.message, type(e).__name__, snapshot_id, started_at), quotes

        except Exception as e:
            machine.fail(str(e))
            logger.exception(f"Unexpected error in live pipeline: {e}")
            return self._failure(machine, f"Unexpected error: {e}", type(e).__name__,
                                 snapshot_id, started_at), quotes

    def _result(
        self,
        machine: PipelineStateMachine,
        status: IngestionStatus,
        message: str,
        snapshot_id: str,
        count: int,
        started_at,
    ) -> PipelineResult:
        return PipelineResult(
            success=True,
            status=status,
            message=message,
            state=machine.state,
            snapshot_id=snapshot_id,
            stock_count=count,
            started_at=started_at,
            completed_at=self._clock.now(),
            timings=machine.timings,
        )

    def _failure(
        self,
        machine: PipelineStateMachine,
        message: str,
        error_type: str,
        snapshot_id: Optional[str],
        started_at,
    ) -> PipelineResult:
        return PipelineResult(
            success=False,
            status=IngestionStatus.FAILED,
            message=message,
            state=machine.state,
            snapshot_id=snapshot_id,
            failed_state=machine.last_active_state,
            error_type=error_type,
            started_at=started_at,
            completed_at=self._clock.now(),
            timings=machine.timings,
        )
