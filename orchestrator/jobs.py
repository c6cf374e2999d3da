"""
Orchestrator - Scheduled Jobs.

============================================================
RESPONSIBILITY
============================================================
Wraps the pipelines with the scheduling rules of the exchange.

DailyCloseJob:
- Scheduled runs only from 19:00 market time
- After a successful run, compares the published date with
  today; on a weekday at/after 23:00 a stale date is reported
  as missing data
- Reports symbols seen for the first time (possible renames)

IntradayAlertJob:
- Scheduled runs only Monday-Friday, 09:30-16:15 market time
- Stores a live snapshot, evaluates ACTIVE alerts, marks the
  triggered ones and returns push payloads (not delivered)

Manual runs bypass the time windows.

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from alerts.evaluator import AlertEvaluator, build_price_map
from alerts.notifications import build_push_payload
from core.clock import ClockProtocol, SystemClock
from core.constants import DAILY_CLOSE_ALERT_HOUR, DAILY_CLOSE_WINDOW_START_HOUR
from data_ingestion.normalizers.date_tag import DateTagParser
from data_ingestion.types import IngestionStatus
from orchestrator.live_pipeline import LiveQuotePipeline
from orchestrator.models import PipelineConfig, PipelineResult
from orchestrator.pipeline import DailyMarketPipeline
from storage.document_store import DocumentStore
from storage.repositories.alerts import AlertRepository
from storage.repositories.exceptions import RepositoryException
from storage.repositories.market_data import MarketDataReader


logger = logging.getLogger(__name__)


# ============================================================
# REPORTS
# ============================================================

@dataclass
class DailyCloseReport:
    """Outcome of one daily close job invocation."""

    ran: bool
    skipped_reason: Optional[str] = None
    result: Optional[PipelineResult] = None
    today_tag: Optional[str] = None
    stale: bool = False
    data_missing: bool = False
    new_symbols: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ran": self.ran,
            "skipped_reason": self.skipped_reason,
            "result": self.result.to_dict() if self.result else None,
            "today_tag": self.today_tag,
            "stale": self.stale,
            "data_missing": self.data_missing,
            "new_symbols": list(self.new_symbols),
            "error": self.error,
        }


@dataclass
class AlertJobReport:
    """Outcome of one intraday alert job invocation."""

    ran: bool
    skipped_reason: Optional[str] = None
    result: Optional[PipelineResult] = None
    active_alerts: int = 0
    triggered: int = 0
    payloads: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ran": self.ran,
            "skipped_reason": self.skipped_reason,
            "result": self.result.to_dict() if self.result else None,
            "active_alerts": self.active_alerts,
            "triggered": self.triggered,
            "payloads": list(self.payloads),
            "error": self.error,
        }


# ============================================================
# DAILY CLOSE
# ============================================================

class DailyCloseJob:
    """Daily close scrape with staleness and new-symbol reporting."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[PipelineConfig] = None,
        pipeline: Optional[DailyMarketPipeline] = None,
        clock: Optional[ClockProtocol] = None,
        date_parser: Optional[DateTagParser] = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._clock = clock or SystemClock(self._config.market_timezone)
        self._pipeline = pipeline or DailyMarketPipeline(store, config=self._config, clock=self._clock)
        self._reader = MarketDataReader(store)
        self._dates = date_parser or DateTagParser()

    def in_window(self) -> bool:
        return self._clock.market_now().hour >= DAILY_CLOSE_WINDOW_START_HOUR

    async def run(self, manual: bool = False) -> DailyCloseReport:
        if not manual and not self.in_window():
            logger.info("[DailyClose] Outside daily close window, skipping")
            return DailyCloseReport(ran=False, skipped_reason="outside daily close window")

        read_error: Optional[str] = None
        try:
            known = self._reader.known_symbols()
        except RepositoryException as e:
            logger.error(f"[DailyClose] Known symbols lookup failed: {e}")
            read_error = str(e)
            known = set()

        result = await self._pipeline.run()
        report = DailyCloseReport(ran=True, result=result, error=read_error)

        if not result.success:
            logger.error(f"[DailyClose] Scrape failed: {result.message}")
            return report

        today_tag = self._dates.tag_for(self._clock.market_today())
        report.today_tag = today_tag
        report.stale = result.date_tag != today_tag

        if report.stale:
            market_now = self._clock.market_now()
            if self._clock.is_weekday() and market_now.hour >= DAILY_CLOSE_ALERT_HOUR:
                report.data_missing = True
                logger.warning(
                    f"[DailyClose] Data missing for {today_tag}: "
                    f"latest published date is {result.date_tag}"
                )
            else:
                logger.info(
                    f"[DailyClose] Published date {result.date_tag} is not today ({today_tag}) yet"
                )

        if result.status == IngestionStatus.CREATED and known:
            try:
                day_symbols = {stock["symbol"] for stock in self._reader.list_stocks(result.date_tag)}
            except RepositoryException as e:
                logger.error(f"[DailyClose] New symbol check failed: {e}")
                report.error = str(e)
                return report
            report.new_symbols = sorted(day_symbols - known)
            if report.new_symbols:
                logger.warning(
                    f"[DailyClose] Unknown symbols detected: {', '.join(report.new_symbols)}"
                )

        if result.status == IngestionStatus.ALREADY_EXISTS:
            logger.info(f"[DailyClose] Data for {result.date_tag} already exists. No action needed.")

        return report


# ============================================================
# INTRADAY ALERTS
# ============================================================

class IntradayAlertJob:
    """Live snapshot plus price alert evaluation."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[PipelineConfig] = None,
        pipeline: Optional[LiveQuotePipeline] = None,
        clock: Optional[ClockProtocol] = None,
        evaluator: Optional[AlertEvaluator] = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._clock = clock or SystemClock(self._config.market_timezone)
        self._pipeline = pipeline or LiveQuotePipeline(store, config=self._config, clock=self._clock)
        self._alerts = AlertRepository(store, clock=self._clock)
        self._evaluator = evaluator or AlertEvaluator()

    async def run(self, manual: bool = False) -> AlertJobReport:
        if not manual and not self._clock.is_trading_hours():
            logger.info("[Alerts] Outside market hours, skipping alert check")
            return AlertJobReport(ran=False, skipped_reason="outside market hours")

        result, quotes = await self._pipeline.collect()
        report = AlertJobReport(ran=True, result=result)

        if not result.success:
            logger.error(f"[Alerts] Live fetch failed: {result.message}")
            return report

        prices = build_price_map(quotes)

        try:
            active = self._alerts.list_active()
            report.active_alerts = len(active)
            if not active:
                logger.info("[Alerts] No active alerts found")
                return report

            triggered = self._evaluator.evaluate(active, prices)
            report.triggered = self._alerts.mark_triggered(triggered)
        except RepositoryException as e:
            logger.error(f"[Alerts] Alert update failed: {e}")
            report.error = str(e)
            return report

        for alert in triggered:
            payload = build_push_payload(alert)
            if payload is not None:
                report.payloads.append(payload)

        if report.triggered:
            logger.info(
                f"[Alerts] {report.triggered} alerts triggered, "
                f"{len(report.payloads)} push payloads prepared"
            )
        else:
            logger.info("[Alerts] No alerts triggered this run")

        return report
