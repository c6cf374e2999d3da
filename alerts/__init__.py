"""
Price Alerts Package.

Alert rules, evaluation against live prices, and push
notification payloads.
"""

from alerts.types import (
    AlertCondition,
    AlertStatus,
    AlertValidationError,
    AlertRule,
    TriggeredAlert,
)
from alerts.evaluator import AlertEvaluator, build_price_map
from alerts.notifications import build_push_payload, build_notification_record


__all__ = [
    "AlertCondition",
    "AlertStatus",
    "AlertValidationError",
    "AlertRule",
    "TriggeredAlert",
    "AlertEvaluator",
    "build_price_map",
    "build_push_payload",
    "build_notification_record",
]
