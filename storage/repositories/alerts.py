"""
Alert Repository.

============================================================
PURPOSE
============================================================
Persistence for price alerts and their notification history.

    alerts/{alertId}          AlertRule
    notifications/{id}        triggered-alert history record

============================================================
"""

import uuid
from dataclasses import replace
from typing import List, Optional, Sequence

from alerts.notifications import build_notification_record
from alerts.types import AlertRule, AlertStatus, TriggeredAlert
from core.clock import ClockProtocol, SystemClock
from core.constants import ALERTS_COLLECTION, NOTIFICATIONS_COLLECTION
from storage.document_store import DocumentStore, WriteKind, WriteOperation, document_path
from storage.repositories.base import BaseRepository


class AlertRepository(BaseRepository):
    """CRUD for price alerts."""

    # An alert update and its notification record commit together
    PAIR_OPERATIONS = 2

    def __init__(self, store: DocumentStore, clock: Optional[ClockProtocol] = None) -> None:
        super().__init__(store, "AlertRepository")
        if store.max_batch_operations < self.PAIR_OPERATIONS:
            raise ValueError(
                f"store batch limit {store.max_batch_operations} is below "
                f"{self.PAIR_OPERATIONS}"
            )
        self._clock = clock or SystemClock()

    def create_alert(self, rule: AlertRule) -> AlertRule:
        """
        Store a new alert.

        Raises:
            DuplicateRecordError: if the alert id is taken
        """
        if rule.created_at is None:
            rule = replace(rule, created_at=self._clock.format_iso())

        self._store.batch().create(
            document_path(ALERTS_COLLECTION, rule.alert_id),
            rule.to_document(),
        ).commit()

        self._logger.info(f"Alert created: {rule.alert_id} for {rule.symbol} by {rule.user_id}")
        return rule

    def get_alert(self, alert_id: str) -> Optional[AlertRule]:
        data = self._get(document_path(ALERTS_COLLECTION, alert_id))
        return AlertRule.from_document(alert_id, data) if data is not None else None

    def list_active(self, user_id: Optional[str] = None) -> List[AlertRule]:
        """ACTIVE alerts, optionally for one user, ordered by id."""
        rules = [
            AlertRule.from_document(alert_id, data)
            for alert_id, data in sorted(self._list(ALERTS_COLLECTION).items())
        ]
        return [
            rule for rule in rules
            if rule.status == AlertStatus.ACTIVE
            and (user_id is None or rule.user_id == user_id)
        ]

    def mark_triggered(self, triggered: Sequence[TriggeredAlert]) -> int:
        """
        Flip triggered alerts to TRIGGERED and record notifications.

        Each alert update and its notification record share a batch.

        Returns:
            Number of alerts updated
        """
        if not triggered:
            return 0

        now = self._clock.now()
        operations: List[WriteOperation] = []
        for alert in triggered:
            operations.append(WriteOperation(
                WriteKind.UPDATE,
                document_path(ALERTS_COLLECTION, alert.rule.alert_id),
                {
                    "status": AlertStatus.TRIGGERED.value,
                    "triggeredAt": now.isoformat(),
                    "triggeredPrice": alert.price,
                },
            ))
            operations.append(WriteOperation(
                WriteKind.SET,
                document_path(NOTIFICATIONS_COLLECTION, uuid.uuid4().hex),
                build_notification_record(alert, now),
            ))

        # Chunks must not split an alert from its notification
        size = self._store.max_batch_operations - self._store.max_batch_operations % self.PAIR_OPERATIONS
        for start in range(0, len(operations), size):
            self._store.commit(operations[start:start + size])

        self._logger.info(f"Updated {len(triggered)} alerts")
        return len(triggered)
