"""
Discrepancy detection for correlated pairs.

A pair is actionable when the signal source is ahead on the home score (checked
first) or, failing that, on the away score, and the governing market is still
open. The governing market_open flag comes from exactly one side, chosen by
SuspensionAuthority.
"""
from __future__ import annotations

from typing import Iterable, Optional

from shared.models.domain import Alert, CorrelatedPair
from shared.models.enums import ScoreAdvantage, SuspensionAuthority
from shared.utils.logging import get_logger
from shared.utils.metrics import ALERTS_ACTIONABLE, ALERTS_SUPPRESSED

logger = get_logger(__name__)


def score_advantage(pair: CorrelatedPair) -> Optional[ScoreAdvantage]:
    """Home advantage takes priority; away is only checked when home is not ahead."""
    if pair.signal.home_score > pair.market.home_score:
        return ScoreAdvantage.HOME
    if pair.signal.away_score > pair.market.away_score:
        return ScoreAdvantage.AWAY
    return None


class DiscrepancyDetector:
    """Decides whether a correlated pair is worth an alert."""

    def __init__(self, authority: SuspensionAuthority = SuspensionAuthority.MARKET) -> None:
        self._authority = authority

    @property
    def authority(self) -> SuspensionAuthority:
        return self._authority

    def market_open(self, pair: CorrelatedPair) -> bool:
        if self._authority is SuspensionAuthority.SIGNAL:
            return pair.signal.market_open
        return pair.market.market_open

    def evaluate(self, pair: CorrelatedPair) -> Optional[Alert]:
        advantage = score_advantage(pair)
        if advantage is None:
            return None

        # Audit trail: log the market side of every score discrepancy,
        # including ones the suspension check rejects.
        logger.info(
            "score_advantage_found",
            advantage=advantage.value,
            signal=pair.signal.display_name,
            signal_score=pair.signal.score,
            market=pair.market.model_dump(mode="json"),
        )

        if not self.market_open(pair):
            ALERTS_SUPPRESSED.labels(authority=self._authority.value).inc()
            logger.info(
                "market_suspended",
                match=pair.signal.display_name,
                authority=self._authority.value,
            )
            return None

        ALERTS_ACTIONABLE.labels(advantage=advantage.value).inc()
        return Alert(pair=pair, advantage=advantage)

    def detect(self, pair: CorrelatedPair) -> bool:
        return self.evaluate(pair) is not None

    def actionable(self, pairs: Iterable[CorrelatedPair]) -> list[Alert]:
        alerts = []
        for pair in pairs:
            alert = self.evaluate(pair)
            if alert is not None:
                alerts.append(alert)
        return alerts
