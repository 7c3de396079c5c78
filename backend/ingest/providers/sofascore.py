"""
SofaScore provider connector (signal source).
Reads the public live football feed; scores here tend to move first.
"""
from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional

from ingest.normalization.normalizer import (
    MalformedRecord,
    coerce_score,
    evaluate_market,
    require_mapping,
    require_str,
)
from ingest.providers.base import DEFAULT_VIRTUAL_LEAGUE, BaseProvider
from shared.config import Settings, get_settings
from shared.models.domain import NormalizedMatch
from shared.models.enums import ProviderName, SourceRole
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import RECORDS_SKIPPED

logger = get_logger(__name__)

SOFASCORE_WEB = "https://www.sofascore.com"


def build_match_link(event: Mapping[str, Any]) -> Optional[str]:
    """
    Public match page for an event, e.g.
    https://www.sofascore.com/arsenal-chelsea/RsUc#id:17

    Only built when both tournament and season ids are known.
    """
    tournament = event.get("tournament")
    season = event.get("season")
    tournament_id = tournament.get("id") if isinstance(tournament, Mapping) else None
    season_id = season.get("id") if isinstance(season, Mapping) else None
    if tournament_id is None or season_id is None:
        return None
    slug = event.get("slug")
    custom_id = event.get("customId")
    if not slug or not custom_id:
        return None
    return f"{SOFASCORE_WEB}/{slug}/{custom_id}#id:{tournament_id}"


class SofaScoreProvider(BaseProvider):
    """Normalizes {"events": [...]} payloads, whether fetched or pushed in."""

    def __init__(
        self,
        http_client: Optional[ProviderHTTPClient] = None,
        settings: Optional[Settings] = None,
        missing_market_default: bool = False,
        virtual_league_marker: str = DEFAULT_VIRTUAL_LEAGUE,
    ) -> None:
        settings = settings or get_settings()
        self._live_path = settings.sofascore_live_path
        if http_client is None:
            http_client = ProviderHTTPClient(
                provider_name=ProviderName.SOFASCORE.value,
                base_url=settings.sofascore_base_url,
                headers={
                    "User-Agent": settings.sofascore_user_agent,
                    "Accept": "application/json",
                },
            )
        super().__init__(
            name=ProviderName.SOFASCORE,
            role=SourceRole.SIGNAL,
            http_client=http_client,
            missing_market_default=missing_market_default,
            virtual_league_marker=virtual_league_marker,
        )

    async def _fetch_raw(self) -> Any:
        return await self._http.get_json(self._live_path)

    def _iter_entries(self, raw: Any) -> Iterator[tuple[Mapping[str, Any], Mapping[str, Any]]]:
        if not isinstance(raw, Mapping):
            raise MalformedRecord("payload is not an object")
        events = raw.get("events")
        if not isinstance(events, list):
            raise MalformedRecord("payload has no events list")
        for event in events:
            if not isinstance(event, Mapping):
                RECORDS_SKIPPED.labels(provider=self._name.value, reason="malformed").inc()
                continue
            yield event, raw

    def _category_name(self, entry: Mapping[str, Any], context: Mapping[str, Any]) -> Optional[str]:
        tournament = entry.get("tournament")
        if not isinstance(tournament, Mapping):
            return None
        category = tournament.get("category")
        if not isinstance(category, Mapping):
            return None
        return category.get("name")

    def _normalize_entry(
        self, entry: Mapping[str, Any], context: Mapping[str, Any]
    ) -> NormalizedMatch:
        tournament = require_mapping(entry, "tournament")
        category = require_mapping(tournament, "category")
        return NormalizedMatch(
            provider=self._name,
            home_team=require_str(require_mapping(entry, "homeTeam"), "name"),
            away_team=require_str(require_mapping(entry, "awayTeam"), "name"),
            home_score=coerce_score(require_mapping(entry, "homeScore").get("current")),
            away_score=coerce_score(require_mapping(entry, "awayScore").get("current")),
            league=str(category.get("name") or ""),
            tournament=str(tournament.get("name") or ""),
            match_link=build_match_link(entry),
            market_open=evaluate_market(entry, self._missing_market_default),
        )
