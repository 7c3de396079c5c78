"""
Provider registry: one signal provider and one market provider per deployment.
"""
from __future__ import annotations

from typing import Optional

from shared.config import Settings, get_settings
from shared.models.enums import SourceRole
from shared.utils.logging import get_logger

from ingest.providers.base import DEFAULT_VIRTUAL_LEAGUE, BaseProvider
from ingest.providers.sofascore import SofaScoreProvider
from ingest.providers.sportybet import SportyBetProvider

logger = get_logger(__name__)


class ProviderRegistry:
    """Holds the provider for each source role and manages their HTTP lifecycle."""

    def __init__(self, signal: BaseProvider, market: BaseProvider) -> None:
        if signal.role is not SourceRole.SIGNAL:
            raise ValueError(f"{signal.name.value} is not a signal provider")
        if market.role is not SourceRole.MARKET:
            raise ValueError(f"{market.name.value} is not a market provider")
        self._providers: dict[SourceRole, BaseProvider] = {
            SourceRole.SIGNAL: signal,
            SourceRole.MARKET: market,
        }

    @property
    def signal(self) -> BaseProvider:
        return self._providers[SourceRole.SIGNAL]

    @property
    def market(self) -> BaseProvider:
        return self._providers[SourceRole.MARKET]

    async def start_all(self) -> None:
        for provider in self._providers.values():
            await provider.start()
        logger.info(
            "providers_started",
            signal=self.signal.name.value,
            market=self.market.name.value,
        )

    async def close_all(self) -> None:
        for provider in self._providers.values():
            await provider.close()


def build_default_registry(
    settings: Optional[Settings] = None,
    missing_market_default: bool = False,
    virtual_league_marker: str = DEFAULT_VIRTUAL_LEAGUE,
) -> ProviderRegistry:
    """SofaScore as the signal source, SportyBet as the market source."""
    settings = settings or get_settings()
    common = {
        "settings": settings,
        "missing_market_default": missing_market_default,
        "virtual_league_marker": virtual_league_marker,
    }
    return ProviderRegistry(
        signal=SofaScoreProvider(**common),
        market=SportyBetProvider(**common),
    )
