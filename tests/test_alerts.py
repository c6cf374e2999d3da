"""
Tests for price alerts.

============================================================
TEST SCENARIOS
============================================================
1. Alert creation validation messages
2. ABOVE / BELOW threshold evaluation, inclusive
3. Prices of zero never trigger
4. Push payload and notification record contracts
5. Repository: create, list active, mark triggered

============================================================
"""

from datetime import datetime, timezone

import pytest

from alerts.evaluator import AlertEvaluator, build_price_map
from alerts.notifications import (
    build_notification_record,
    build_push_payload,
    format_price,
)
from alerts.types import (
    AlertCondition,
    AlertRule,
    AlertStatus,
    AlertValidationError,
    TriggeredAlert,
)
from data_ingestion.normalizers.market_normalizer import MarketRowNormalizer
from data_ingestion.types import LiveQuote
from storage.document_store import InMemoryDocumentStore
from storage.repositories.alerts import AlertRepository


def make_rule(symbol="CRDB", target=1200, condition="ABOVE", **kwargs) -> AlertRule:
    return AlertRule.create(symbol=symbol, target_price=target, condition=condition,
                            user_id=kwargs.pop("user_id", "user-1"), **kwargs)


# ============================================================
# TEST: ALERT RULES
# ============================================================

class TestAlertRuleCreate:
    """Validation of new alerts."""

    def test_valid_alert(self):
        rule = make_rule(symbol=" crdb ", target=1200, condition="BELOW", fcm_token="tok")
        assert rule.symbol == "CRDB"
        assert rule.target_price == 1200.0
        assert rule.condition == AlertCondition.BELOW
        assert rule.status == AlertStatus.ACTIVE
        assert rule.user_email == "unknown"
        assert len(rule.alert_id) == 32

    @pytest.mark.parametrize("symbol", ["", "   ", None, 42])
    def test_invalid_symbol(self, symbol):
        with pytest.raises(AlertValidationError) as exc_info:
            make_rule(symbol=symbol)
        assert exc_info.value.reason == "Valid symbol is required."

    @pytest.mark.parametrize("target", [0, -5, "1200", None, True])
    def test_invalid_target(self, target):
        with pytest.raises(AlertValidationError) as exc_info:
            make_rule(target=target)
        assert exc_info.value.reason == "Positive target price is required."

    @pytest.mark.parametrize("condition", ["above", "EQUAL", None])
    def test_invalid_condition(self, condition):
        with pytest.raises(AlertValidationError) as exc_info:
            make_rule(condition=condition)
        assert exc_info.value.reason == "Condition must be ABOVE or BELOW."

    @pytest.mark.parametrize("symbol", ["VERTEX-ETF", " vertex-etf ", "VERTEX ETF"])
    def test_alias_stored_under_canonical_symbol(self, symbol):
        assert make_rule(symbol=symbol).symbol == "VERTEX ETF"

    def test_document_round_trip_fields(self):
        rule = make_rule(fcm_token="tok", user_email="a@b.c")
        document = rule.to_document()
        assert document["targetPrice"] == 1200.0
        assert document["condition"] == "ABOVE"
        assert document["status"] == "ACTIVE"
        assert AlertRule.from_document(rule.alert_id, document) == rule


# ============================================================
# TEST: EVALUATION
# ============================================================

class TestAlertEvaluator:
    """Threshold checks against live prices."""

    @pytest.mark.parametrize("condition,target,price,expected", [
        ("ABOVE", 1200, 1210, True),
        ("ABOVE", 1200, 1200, True),
        ("ABOVE", 1200, 1190, False),
        ("BELOW", 1200, 1190, True),
        ("BELOW", 1200, 1200, True),
        ("BELOW", 1200, 1210, False),
    ])
    def test_threshold(self, condition, target, price, expected):
        rule = make_rule(target=target, condition=condition)
        triggered = AlertEvaluator().evaluate([rule], {"CRDB": price})
        assert bool(triggered) is expected

    def test_price_map_ignores_zero_prices(self):
        prices = build_price_map([
            LiveQuote("CRDB", 1210.0, 20.0),
            LiveQuote("NMB", 0.0, 0.0),
        ])
        assert prices == {"CRDB": 1210.0}

    def test_missing_symbol_not_triggered(self):
        rule = make_rule(symbol="NMB", condition="BELOW", target=5000)
        assert AlertEvaluator().evaluate([rule], {"CRDB": 1.0}) == []

    def test_alias_matches_live_quote(self):
        quote = MarketRowNormalizer().to_live_quote({"company": "VERTEX-ETF", "price": "500", "change": "0"})
        rule = make_rule(symbol="VERTEX-ETF", target=400, condition="ABOVE")

        triggered = AlertEvaluator().evaluate([rule], build_price_map([quote]))

        assert quote.symbol == "VERTEX ETF"
        assert [alert.rule.alert_id for alert in triggered] == [rule.alert_id]
        assert triggered[0].price == 500.0

    def test_triggered_rule_ignored(self):
        rule = make_rule().mark_triggered(1300.0, datetime(2026, 2, 10, tzinfo=timezone.utc))
        assert AlertEvaluator().evaluate([rule], {"CRDB": 1300.0}) == []


# ============================================================
# TEST: NOTIFICATIONS
# ============================================================

class TestNotifications:
    """Payload contracts."""

    def test_format_price(self):
        assert format_price(1210.0) == "1210"
        assert format_price(1210.5) == "1210.5"

    def test_push_payload(self):
        rule = make_rule(fcm_token="device-token")
        payload = build_push_payload(TriggeredAlert(rule=rule, price=1210.0))
        assert payload == {
            "token": "device-token",
            "notification": {
                "title": "Price Alert: CRDB",
                "body": "CRDB is now 1210 TZS (Target: 1200)",
            },
            "data": {
                "type": "PRICE_ALERT",
                "symbol": "CRDB",
                "alertId": rule.alert_id,
                "price": "1210",
            },
        }

    def test_no_token_no_payload(self):
        assert build_push_payload(TriggeredAlert(rule=make_rule(), price=1210.0)) is None

    def test_notification_record(self):
        rule = make_rule()
        created_at = datetime(2026, 2, 10, 8, 0, tzinfo=timezone.utc)
        record = build_notification_record(TriggeredAlert(rule=rule, price=1210.0), created_at)
        assert record["userId"] == "user-1"
        assert record["body"] == "CRDB reached 1210 TZS"
        assert record["data"] == {"symbol": "CRDB", "triggeredPrice": 1210.0, "alertId": rule.alert_id}
        assert record["read"] is False
        assert record["createdAt"] == "2026-02-10T08:00:00+00:00"


# ============================================================
# TEST: REPOSITORY
# ============================================================

class TestAlertRepository:
    """Alert persistence."""

    @pytest.fixture
    def repository(self, store, clock):
        return AlertRepository(store, clock=clock)

    def test_create_sets_created_at(self, repository):
        stored = repository.create_alert(make_rule())
        assert stored.created_at == "2026-02-10T08:00:00+00:00"
        assert repository.get_alert(stored.alert_id) == stored

    def test_list_active_filters(self, repository):
        first = repository.create_alert(make_rule(user_id="u1"))
        repository.create_alert(make_rule(user_id="u2"))
        assert len(repository.list_active()) == 2
        assert [rule.alert_id for rule in repository.list_active(user_id="u1")] == [first.alert_id]

    def test_mark_triggered(self, store, repository):
        rule = repository.create_alert(make_rule())
        count = repository.mark_triggered([TriggeredAlert(rule=rule, price=1210.0)])

        assert count == 1
        updated = repository.get_alert(rule.alert_id)
        assert updated.status == AlertStatus.TRIGGERED
        assert updated.triggered_price == 1210.0
        assert updated.triggered_at == "2026-02-10T08:00:00+00:00"
        assert repository.list_active() == []

        notifications = store.list_collection("notifications")
        assert len(notifications) == 1
        assert next(iter(notifications.values()))["data"]["alertId"] == rule.alert_id

    def test_mark_triggered_keeps_pairs_together(self, clock):
        store = InMemoryDocumentStore(max_batch_operations=3)
        repository = AlertRepository(store, clock=clock)
        rules = [repository.create_alert(make_rule(user_id=f"u{i}")) for i in range(3)]
        commits = store.commit_count

        repository.mark_triggered([TriggeredAlert(rule=rule, price=1300.0) for rule in rules])

        # Chunks of 2 operations: one alert and its notification each
        assert store.commit_count - commits == 3
        assert len(store.list_collection("notifications")) == 3

    def test_batch_limit_below_pair_rejected(self, clock):
        with pytest.raises(ValueError):
            AlertRepository(InMemoryDocumentStore(max_batch_operations=1), clock=clock)

    def test_mark_triggered_nothing(self, repository):
        assert repository.mark_triggered([]) == 0
