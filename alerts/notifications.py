"""
Price Alert Notifications.

============================================================
PURPOSE
============================================================
Builds the push message payload and the in-app notification
history record for a triggered alert.

PRINCIPLES:
- Payload contract only, delivery is not done here
- data values are strings (push data maps are string-only)
- Prices render without a trailing ".0"

============================================================
"""

from datetime import datetime
from typing import Any, Dict, Optional

from alerts.types import TriggeredAlert


NOTIFICATION_TYPE = "PRICE_ALERT"


def format_price(value: float) -> str:
    """1210.0 -> '1210', 1210.5 -> '1210.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def alert_title(symbol: str) -> str:
    return f"Price Alert: {symbol}"


def build_push_payload(alert: TriggeredAlert) -> Optional[Dict[str, Any]]:
    """
    Push message for one triggered alert.

    Returns None when the alert has no device token.
    """
    rule = alert.rule
    if not rule.fcm_token:
        return None

    price = format_price(alert.price)
    return {
        "token": rule.fcm_token,
        "notification": {
            "title": alert_title(rule.symbol),
            "body": f"{rule.symbol} is now {price} TZS (Target: {format_price(rule.target_price)})",
        },
        "data": {
            "type": NOTIFICATION_TYPE,
            "symbol": rule.symbol,
            "alertId": rule.alert_id,
            "price": price,
        },
    }


def build_notification_record(alert: TriggeredAlert, created_at: datetime) -> Dict[str, Any]:
    """History document stored under notifications/{id}."""
    rule = alert.rule
    return {
        "userId": rule.user_id,
        "type": NOTIFICATION_TYPE,
        "title": alert_title(rule.symbol),
        "body": f"{rule.symbol} reached {format_price(alert.price)} TZS",
        "data": {
            "symbol": rule.symbol,
            "triggeredPrice": alert.price,
            "alertId": rule.alert_id,
        },
        "read": False,
        "createdAt": created_at.isoformat(),
    }
