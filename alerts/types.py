"""
Price Alert Types.

============================================================
PURPOSE
============================================================
User-defined price alerts on a single symbol.

PRINCIPLES:
- ABOVE triggers when price >= target
- BELOW triggers when price <= target
- A triggered alert never fires again
- Symbols are stored under their canonical name, aliases mapped
- Creation input is validated, never coerced silently

============================================================
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Any, Dict, Optional, Union

from data_ingestion.normalizers.symbol import SymbolNormalizer


# ============================================================
# ENUMS
# ============================================================

class AlertCondition(str, Enum):
    """Direction of the price threshold."""
    ABOVE = "ABOVE"
    BELOW = "BELOW"


class AlertStatus(str, Enum):
    """Lifecycle of an alert."""
    ACTIVE = "ACTIVE"
    TRIGGERED = "TRIGGERED"


class AlertValidationError(ValueError):
    """Alert creation input rejected."""

    def __init__(self, field: str, reason: str):
        super().__init__(reason)
        self.field = field
        self.reason = reason


# ============================================================
# ALERT RULE
# ============================================================

@dataclass(frozen=True)
class AlertRule:
    """One stored price alert."""
    alert_id: str
    symbol: str
    target_price: float
    condition: AlertCondition
    status: AlertStatus = AlertStatus.ACTIVE
    user_id: str = ""
    user_email: str = "unknown"
    fcm_token: Optional[str] = None
    created_at: Optional[str] = None
    triggered_at: Optional[str] = None
    triggered_price: Optional[float] = None
    last_checked_at: Optional[str] = None

    @classmethod
    def create(
        cls,
        symbol: Any,
        target_price: Any,
        condition: Union[str, AlertCondition],
        user_id: str = "",
        fcm_token: Optional[str] = None,
        user_email: Optional[str] = None,
        alert_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        symbol_normalizer: Optional[SymbolNormalizer] = None,
    ) -> "AlertRule":
        """
        Validate input and build an ACTIVE alert.

        Raises:
            AlertValidationError: on empty symbol, non-positive or
                non-numeric target, or unknown condition
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise AlertValidationError("symbol", "Valid symbol is required.")

        if (
            isinstance(target_price, bool)
            or not isinstance(target_price, Real)
            or not target_price > 0
        ):
            raise AlertValidationError("targetPrice", "Positive target price is required.")

        try:
            parsed_condition = AlertCondition(condition)
        except ValueError:
            raise AlertValidationError("condition", "Condition must be ABOVE or BELOW.") from None

        return cls(
            alert_id=alert_id or uuid.uuid4().hex,
            symbol=(symbol_normalizer or SymbolNormalizer()).normalize(symbol.upper()),
            target_price=float(target_price),
            condition=parsed_condition,
            user_id=user_id,
            user_email=user_email or "unknown",
            fcm_token=fcm_token,
            created_at=created_at.isoformat() if created_at else None,
        )

    @property
    def is_active(self) -> bool:
        return self.status == AlertStatus.ACTIVE

    def is_triggered_by(self, price: float) -> bool:
        """Whether a current price meets the threshold."""
        if self.condition == AlertCondition.ABOVE:
            return price >= self.target_price
        return price <= self.target_price

    def mark_triggered(self, price: float, at: datetime) -> "AlertRule":
        return replace(
            self,
            status=AlertStatus.TRIGGERED,
            triggered_at=at.isoformat(),
            triggered_price=price,
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "userEmail": self.user_email,
            "symbol": self.symbol,
            "targetPrice": self.target_price,
            "condition": self.condition.value,
            "fcmToken": self.fcm_token,
            "status": self.status.value,
            "createdAt": self.created_at,
            "triggeredAt": self.triggered_at,
            "triggeredPrice": self.triggered_price,
            "lastCheckedAt": self.last_checked_at,
        }

    @classmethod
    def from_document(cls, alert_id: str, data: Dict[str, Any]) -> "AlertRule":
        return cls(
            alert_id=alert_id,
            symbol=data["symbol"],
            target_price=float(data["targetPrice"]),
            condition=AlertCondition(data["condition"]),
            status=AlertStatus(data.get("status", AlertStatus.ACTIVE.value)),
            user_id=data.get("userId", ""),
            user_email=data.get("userEmail", "unknown"),
            fcm_token=data.get("fcmToken"),
            created_at=data.get("createdAt"),
            triggered_at=data.get("triggeredAt"),
            triggered_price=data.get("triggeredPrice"),
            last_checked_at=data.get("lastCheckedAt"),
        )


@dataclass(frozen=True)
class TriggeredAlert:
    """An alert whose threshold was met by a live price."""
    rule: AlertRule
    price: float
