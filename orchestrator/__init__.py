"""
Orchestrator Package.

============================================================
RESPONSIBILITY
============================================================
Runs the ingestion pipelines and the scheduled jobs built on
them.

- pipeline: DailyMarketPipeline (HTML market summary)
- live_pipeline: LiveQuotePipeline (JSON live feed)
- jobs: DailyCloseJob, IntradayAlertJob (time windows)
- scheduler: JobScheduler (hourly and 15-minute triggers)
- cli: python -m orchestrator.cli {daily,live,alerts,schedule,init-db}

============================================================
"""

from orchestrator.models import (
    PipelineState,
    PipelineResult,
    PipelineConfig,
)
from orchestrator.pipeline import DailyMarketPipeline
from orchestrator.live_pipeline import LiveQuotePipeline
from orchestrator.jobs import DailyCloseJob, IntradayAlertJob, DailyCloseReport, AlertJobReport
from orchestrator.scheduler import JobScheduler
from orchestrator.logging_setup import setup_logging


__all__ = [
    "PipelineState",
    "PipelineResult",
    "PipelineConfig",
    "DailyMarketPipeline",
    "LiveQuotePipeline",
    "DailyCloseJob",
    "IntradayAlertJob",
    "DailyCloseReport",
    "AlertJobReport",
    "JobScheduler",
    "setup_logging",
]
