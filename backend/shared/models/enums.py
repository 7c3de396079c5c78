"""Domain enumerations for the scorelag service."""
from __future__ import annotations

from enum import Enum


class ProviderName(str, Enum):
    SOFASCORE = "sofascore"
    SPORTYBET = "sportybet"


class SourceRole(str, Enum):
    """Which side of a comparison a provider feeds."""
    SIGNAL = "signal"    # trusted to update the live score first
    MARKET = "market"    # exposes the tradeable market and its suspension state


class CorrelationMode(str, Enum):
    HOME_ONLY = "home_only"
    HOME_AND_AWAY = "home_and_away"


class SuspensionAuthority(str, Enum):
    """Side whose market_open flag gates an alert."""
    SIGNAL = "signal"
    MARKET = "market"


class ScoreAdvantage(str, Enum):
    HOME = "home"
    AWAY = "away"


class CycleTrigger(str, Enum):
    TIMER = "timer"
    PUSH = "push"
