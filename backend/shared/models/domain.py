"""
Pydantic v2 domain models shared across all scorelag services.
Records are rebuilt from the live feeds every cycle; nothing here is persisted.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.enums import CycleTrigger, ProviderName, ScoreAdvantage

NO_MATCH_LINK = "No Match Link Generated (Please, manually search it on sofascore)"


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class FrozenModel(DomainModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)


# ── Match records ───────────────────────────────────────────────────────
class NormalizedMatch(FrozenModel):
    """One live match as reported by a single provider."""
    provider: ProviderName
    home_team: str
    away_team: str
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    league: str = ""
    tournament: str = ""
    match_link: Optional[str] = None
    market_open: bool = False
    raw_score: Optional[str] = None

    @property
    def score(self) -> str:
        """Display score, in the provider's own notation when it has one."""
        if self.raw_score is not None:
            return self.raw_score
        return f"{self.home_score} - {self.away_score}"

    @property
    def display_name(self) -> str:
        return f"{self.home_team} vs {self.away_team}"


class CorrelatedPair(FrozenModel):
    """A signal record and a market record judged to be the same real match."""
    signal: NormalizedMatch
    market: NormalizedMatch


# ── Dispatch / cycle results ────────────────────────────────────────────
class DeliveryResult(DomainModel):
    pair: CorrelatedPair
    delivered: bool = False
    skipped: bool = False
    error: Optional[str] = None


class Alert(DomainModel):
    """An actionable pair together with the branch that fired."""
    pair: CorrelatedPair
    advantage: ScoreAdvantage


class CycleReport(DomainModel):
    trigger: CycleTrigger
    signal_count: int = 0
    market_count: int = 0
    correlated: int = 0
    actionable: int = 0
    deliveries: list[DeliveryResult] = Field(default_factory=list)
    fetch_errors: dict[str, str] = Field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def delivered(self) -> int:
        return sum(1 for d in self.deliveries if d.delivered)

    @property
    def failed(self) -> int:
        return sum(1 for d in self.deliveries if not d.delivered and not d.skipped)
