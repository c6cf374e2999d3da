"""
Tests for orchestrator configuration, state machine and CLI.

============================================================
TEST SCENARIOS
============================================================
1. PipelineConfig from environment and validation
2. State machine transition tables
3. CLI argument parsing and configuration overrides
4. CLI dry-run execution with a mocked job

============================================================
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from orchestrator.cli import build_config, build_store, create_parser, main
from orchestrator.jobs import DailyCloseReport
from orchestrator.models import (
    DAILY_TRANSITIONS,
    LIVE_TRANSITIONS,
    PipelineConfig,
    PipelineState,
)
from orchestrator.state_machine import InvalidTransitionError, PipelineStateMachine
from storage.document_store import InMemoryDocumentStore
from storage.sql_document_store import SqlDocumentStore


# ============================================================
# TEST: CONFIGURATION
# ============================================================

class TestPipelineConfig:
    """Environment loading and validation."""

    def test_defaults_are_valid(self):
        config = PipelineConfig()
        assert config.validate() == []
        assert config.is_production is False
        assert config.market_summary_config().table_id == "equity-watch"
        assert config.live_price_config().url.endswith("/api/get/live/market/prices")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DSE_BASE_URL", "http://localhost:8080")
        monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("MAX_BATCH_OPERATIONS", "100")
        monkeypatch.setenv("ENVIRONMENT", "Production")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")

        config = PipelineConfig.from_env()

        assert config.base_url == "http://localhost:8080"
        assert config.fetch_timeout_seconds == 5.0
        assert config.max_batch_operations == 100
        assert config.is_production is True
        assert config.database_url == "sqlite://"
        assert config.market_summary_config().url == "http://localhost:8080"

    @pytest.mark.parametrize("overrides,fragment", [
        ({"base_url": "ftp://dse"}, "base_url"),
        ({"fetch_timeout_seconds": 0}, "fetch_timeout_seconds"),
        ({"max_batch_operations": 1}, "max_batch_operations"),
        ({"max_batch_operations": 501}, "max_batch_operations"),
        ({"market_timezone": "Mars/Olympus"}, "market_timezone"),
        ({"log_format": "xml"}, "log_format"),
    ])
    def test_invalid(self, overrides, fragment):
        errors = PipelineConfig(**overrides).validate()
        assert len(errors) == 1
        assert fragment in errors[0]


# ============================================================
# TEST: STATE MACHINE
# ============================================================

class TestPipelineStateMachine:
    """Transition tables of the daily and live runs."""

    def test_daily_happy_path(self):
        machine = PipelineStateMachine(DAILY_TRANSITIONS, "daily")
        for state in (
            PipelineState.FETCHING,
            PipelineState.PARSING_DATE,
            PipelineState.CHECKING_EXISTING,
            PipelineState.EXTRACTING_ROWS,
            PipelineState.DERIVING,
            PipelineState.PERSISTING,
            PipelineState.DONE,
        ):
            machine.transition(state)
        assert machine.state == PipelineState.DONE
        assert len(machine.history) == 7

    def test_already_exists_short_circuit(self):
        machine = PipelineStateMachine(DAILY_TRANSITIONS, "daily")
        machine.transition(PipelineState.FETCHING)
        machine.transition(PipelineState.PARSING_DATE)
        machine.transition(PipelineState.CHECKING_EXISTING)
        assert machine.can_transition(PipelineState.DONE) is True

    def test_invalid_transition(self):
        machine = PipelineStateMachine(DAILY_TRANSITIONS, "daily")
        with pytest.raises(InvalidTransitionError):
            machine.transition(PipelineState.PERSISTING)

    def test_live_has_no_row_extraction(self):
        machine = PipelineStateMachine(LIVE_TRANSITIONS, "live")
        machine.transition(PipelineState.FETCHING)
        assert machine.can_transition(PipelineState.PARSING_DATE) is False
        assert machine.can_transition(PipelineState.PARSING_FEED) is True

    def test_fail_records_last_active_state(self):
        machine = PipelineStateMachine(DAILY_TRANSITIONS, "daily")
        machine.transition(PipelineState.FETCHING)
        machine.fail("timeout")
        assert machine.state == PipelineState.FAILED
        assert machine.last_active_state == PipelineState.FETCHING

        # Already terminal
        machine.fail("again")
        assert len(machine.history) == 2


# ============================================================
# TEST: CLI
# ============================================================

class TestCli:
    """Argument parsing and dispatch."""

    def test_parse_command_and_flags(self):
        args = create_parser().parse_args(["alerts", "--scheduled", "--dry-run", "--timeout", "10"])
        assert args.command == "alerts"
        assert args.scheduled is True
        assert args.dry_run is True
        assert args.timeout == 10.0

    def test_unknown_command_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["backfill"])

    def test_build_config_overrides(self):
        args = create_parser().parse_args([
            "daily", "--timeout", "7", "--database-url", "sqlite://",
            "--log-level", "DEBUG", "--log-format", "json",
        ])
        config = build_config(args, base=PipelineConfig())
        assert config.fetch_timeout_seconds == 7.0
        assert config.database_url == "sqlite://"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_build_config_without_overrides(self):
        base = PipelineConfig()
        args = create_parser().parse_args(["daily"])
        assert build_config(args, base=base) is base

    def test_build_store(self):
        config = PipelineConfig(database_url="sqlite://", max_batch_operations=50)
        assert isinstance(build_store(config, dry_run=True), InMemoryDocumentStore)
        store = build_store(config)
        assert isinstance(store, SqlDocumentStore)
        assert store.max_batch_operations == 50

    def test_invalid_config_exit_code(self, monkeypatch, capsys):
        monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "-1")
        assert main(["daily", "--dry-run"]) == 1
        assert "fetch_timeout_seconds" in capsys.readouterr().err

    def test_init_db(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'dse.db'}"
        with patch("orchestrator.cli.setup_logging"):
            assert main(["init-db", "--database-url", url]) == 0
        assert (tmp_path / "dse.db").exists()

    def test_daily_dry_run_prints_report(self, capsys):
        report = DailyCloseReport(ran=False, skipped_reason="outside daily close window")
        with patch("orchestrator.cli.setup_logging"), \
                patch("orchestrator.cli.DailyCloseJob") as job_cls:
            job_cls.return_value.run = AsyncMock(return_value=report)
            exit_code = main(["daily", "--scheduled", "--dry-run"])

        assert exit_code == 0
        job_cls.return_value.run.assert_awaited_once_with(manual=False)
        output = json.loads(capsys.readouterr().out)
        assert output["skipped_reason"] == "outside daily close window"
