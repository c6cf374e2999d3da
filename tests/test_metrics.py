"""
Tests for the metric deriver.

============================================================
TEST SCENARIOS
============================================================
1. CRDB reference values
2. Every ratio is 0 when its denominator is 0
3. turnoverPercent sums to 100 over the day
4. Sentinel rows excluded from totals and output
5. Aliases folded into the canonical symbol, later row wins

============================================================
"""

import math
from dataclasses import replace

import pytest

from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer
from data_ingestion.normalizers.symbol import SymbolNormalizer
from data_processing.metrics import MetricDeriver

from conftest import CRDB_ROW


@pytest.fixture
def deriver():
    return MetricDeriver()


@pytest.fixture
def crdb_row():
    return MarketRowNormalizer().to_typed_row(CRDB_ROW)


RATIO_FIELDS = (
    "vol_per_deal",
    "turnover_per_deal",
    "turnover_per_mcap",
    "turnover_percent",
    "change_per_vol",
    "bid_offer_ratio",
)


# ============================================================
# TEST: REFERENCE VALUES
# ============================================================

class TestReferenceRow:
    """CRDB row from the daily fixture."""

    def test_crdb_metrics(self, deriver, crdb_row):
        [record] = deriver.derive([crdb_row])

        assert record.symbol == "CRDB"
        assert record.close == 1210.0
        assert record.change_value == 20.0
        assert record.high_low_spread == 40.0
        assert record.vol_per_deal == pytest.approx(50000 / 120)
        assert record.turnover_per_deal == pytest.approx(5000000 / 120)
        assert record.turnover_per_mcap == pytest.approx(5000000 / (450 * 1e9))
        assert record.turnover_percent == pytest.approx(100.0)
        assert record.change_per_vol == pytest.approx(20 / 50000)
        assert record.bid_offer_ratio == pytest.approx(1000 / 900)

    def test_document_keys(self, deriver, crdb_row):
        [record] = deriver.derive([crdb_row])
        document = record.to_document()
        assert document["changeValue"] == 20.0
        assert document["highLowSpread"] == 40.0
        assert document["prevClose"] == 1190.0
        assert document["change"] == "▲ 20"


# ============================================================
# TEST: ZERO DENOMINATORS
# ============================================================

class TestZeroDenominators:
    """Ratios never produce NaN or infinity."""

    @pytest.mark.parametrize("field_name,expected_zero", [
        ("deals", ("vol_per_deal", "turnover_per_deal")),
        ("mcap", ("turnover_per_mcap",)),
        ("volume", ("change_per_vol",)),
        ("outstanding_offer", ("bid_offer_ratio",)),
    ])
    def test_zero_denominator(self, deriver, crdb_row, field_name, expected_zero):
        [record] = deriver.derive([replace(crdb_row, **{field_name: 0.0})])
        for ratio in expected_zero:
            assert getattr(record, ratio) == 0
        for ratio in RATIO_FIELDS:
            value = getattr(record, ratio)
            assert not math.isnan(value)
            assert not math.isinf(value)

    def test_zero_day_turnover(self, deriver, crdb_row):
        [record] = deriver.derive([replace(crdb_row, turnover=0.0)])
        assert record.turnover_percent == 0


# ============================================================
# TEST: DAY AGGREGATES
# ============================================================

class TestDayAggregates:
    """Tests across rows of one trading day."""

    def test_turnover_percent_sums_to_100(self, deriver, crdb_row):
        rows = [
            crdb_row,
            replace(crdb_row, symbol="NMB", turnover=1234567.0),
            replace(crdb_row, symbol="TBL", turnover=89.5),
        ]
        records = deriver.derive(rows)
        assert sum(record.turnover_percent for record in records) == pytest.approx(100.0)

    def test_sentinel_rows_excluded(self, deriver, crdb_row):
        rows = [
            crdb_row,
            replace(crdb_row, symbol="Total", turnover=5000000.0),
            replace(crdb_row, symbol="Co."),
            replace(crdb_row, symbol="  "),
        ]
        assert deriver.day_total_turnover(rows) == 5000000.0
        records = deriver.derive(rows)
        assert [record.symbol for record in records] == ["CRDB"]
        assert records[0].turnover_percent == pytest.approx(100.0)

    def test_alias_later_row_wins(self, crdb_row):
        deriver = MetricDeriver(SymbolNormalizer({"CRDB-NEW": "CRDB"}))
        records = deriver.derive([
            crdb_row,
            replace(crdb_row, symbol="CRDB-NEW", close=1300.0),
        ])
        assert len(records) == 1
        assert records[0].symbol == "CRDB"
        assert records[0].close == 1300.0

    def test_custom_mcap_scale(self, crdb_row):
        deriver = MetricDeriver(mcap_unit_scale=1.0)
        [record] = deriver.derive([crdb_row])
        assert record.turnover_per_mcap == pytest.approx(5000000 / 450)
