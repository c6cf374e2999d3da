"""
Price Alert Evaluator.

Deterministic threshold checks of ACTIVE alerts against
live prices. No I/O.
"""

import logging
from typing import Dict, Iterable, List

from alerts.types import AlertRule, TriggeredAlert
from data_ingestion.types import LiveQuote


logger = logging.getLogger(__name__)


def build_price_map(quotes: Iterable[LiveQuote]) -> Dict[str, float]:
    """Symbol -> current price; quotes without a positive price are ignored."""
    return {
        quote.symbol: quote.price
        for quote in quotes
        if quote.symbol and quote.price > 0
    }


class AlertEvaluator:
    """Evaluates alerts against a price map."""

    def evaluate(
        self,
        rules: Iterable[AlertRule],
        prices: Dict[str, float],
    ) -> List[TriggeredAlert]:
        triggered: List[TriggeredAlert] = []

        for rule in rules:
            if not rule.is_active:
                continue

            price = prices.get(rule.symbol)
            if price is None:
                continue

            if rule.is_triggered_by(price):
                logger.info(
                    f"Alert triggered: {rule.symbol} is {price} "
                    f"({rule.condition.value} {rule.target_price})"
                )
                triggered.append(TriggeredAlert(rule=rule, price=price))

        return triggered
