"""
Match correlation: pair signal records with market records for the same real match.
Team names are compared by plain substring containment ("Arsenal" ~ "Arsenal FC").
"""
from __future__ import annotations

from typing import Sequence

from shared.models.domain import CorrelatedPair, NormalizedMatch
from shared.models.enums import CorrelationMode
from shared.utils.logging import get_logger
from shared.utils.metrics import PAIRS_CORRELATED

logger = get_logger(__name__)


def similar(a: str, b: str) -> bool:
    """Case-sensitive containment in either direction; symmetric."""
    return a in b or b in a


def same_match(signal: NormalizedMatch, market: NormalizedMatch, mode: CorrelationMode) -> bool:
    if not similar(signal.home_team, market.home_team):
        return False
    if mode is CorrelationMode.HOME_AND_AWAY:
        return similar(signal.away_team, market.away_team)
    return True


def correlate(
    signal_matches: Sequence[NormalizedMatch],
    market_matches: Sequence[NormalizedMatch],
    mode: CorrelationMode = CorrelationMode.HOME_AND_AWAY,
) -> list[CorrelatedPair]:
    """
    Test every signal record against every market record.

    All matching pairs are kept, so one signal record may pair with several
    market records. Order is signal-major, then market order.
    """
    pairs = [
        CorrelatedPair(signal=signal, market=market)
        for signal in signal_matches
        for market in market_matches
        if same_match(signal, market, mode)
    ]
    if pairs:
        PAIRS_CORRELATED.labels(mode=mode.value).inc(len(pairs))
    logger.debug(
        "correlation_done",
        mode=mode.value,
        signal=len(signal_matches),
        market=len(market_matches),
        pairs=len(pairs),
    )
    return pairs
