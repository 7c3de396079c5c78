"""
Alert dispatcher interface and message formatting.
"""
from __future__ import annotations

import abc
from typing import Sequence

from shared.models.domain import NO_MATCH_LINK, CorrelatedPair, DeliveryResult
from shared.utils.logging import get_logger
from shared.utils.metrics import ALERT_DELIVERIES

logger = get_logger(__name__)


def format_alert_message(pair: CorrelatedPair) -> str:
    """Plain-text alert body; the transport is responsible for URL-encoding."""
    signal = pair.signal
    return (
        f"GAME: {signal.tournament}\n"
        f"TEAMS: {signal.home_team} vs {signal.away_team}\n"
        f"Sofascore: {signal.score}\n"
        f"REVIEW: {signal.match_link or NO_MATCH_LINK}"
    )


class AlertDispatcher(abc.ABC):
    """Delivers alerts for actionable pairs; one DeliveryResult per pair, never raises."""

    channel: str = "unknown"

    @abc.abstractmethod
    async def dispatch(self, pairs: Sequence[CorrelatedPair]) -> list[DeliveryResult]:
        ...

    async def close(self) -> None:
        """Release transport resources."""


class LoggingDispatcher(AlertDispatcher):
    """Writes alerts to the log instead of a messaging service (dry runs, alerts disabled)."""

    channel = "log"

    async def dispatch(self, pairs: Sequence[CorrelatedPair]) -> list[DeliveryResult]:
        results = []
        for pair in pairs:
            logger.info("alert", message=format_alert_message(pair))
            ALERT_DELIVERIES.labels(channel=self.channel, outcome="delivered").inc()
            results.append(DeliveryResult(pair=pair, delivered=True))
        return results
