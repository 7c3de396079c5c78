"""
SportyBet provider connector (market source).
Live events come grouped by category; each event carries an "H:A" score
string and, when offered, the Home/Away market used for suspension checks.
"""
from __future__ import annotations

import time
from typing import Any, Iterator, Mapping, Optional

from ingest.normalization.normalizer import (
    MalformedRecord,
    evaluate_market,
    parse_score_string,
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


class SportyBetProvider(BaseProvider):
    """Normalizes {"data": [{categoryName, name, events: [...]}, ...]} payloads."""

    def __init__(
        self,
        http_client: Optional[ProviderHTTPClient] = None,
        settings: Optional[Settings] = None,
        missing_market_default: bool = False,
        virtual_league_marker: str = DEFAULT_VIRTUAL_LEAGUE,
    ) -> None:
        settings = settings or get_settings()
        self._events_path = settings.sportybet_events_path
        self._sport_id = settings.sportybet_sport_id
        if http_client is None:
            http_client = ProviderHTTPClient(
                provider_name=ProviderName.SPORTYBET.value,
                base_url=settings.sportybet_base_url,
                headers={"Accept": "application/json"},
            )
        super().__init__(
            name=ProviderName.SPORTYBET,
            role=SourceRole.MARKET,
            http_client=http_client,
            missing_market_default=missing_market_default,
            virtual_league_marker=virtual_league_marker,
        )

    async def _fetch_raw(self) -> Any:
        # _t busts the CDN cache
        params = {"sportId": self._sport_id, "_t": int(time.time() * 1000)}
        return await self._http.get_json(self._events_path, params=params)

    def _iter_entries(self, raw: Any) -> Iterator[tuple[Mapping[str, Any], Mapping[str, Any]]]:
        if not isinstance(raw, Mapping):
            raise MalformedRecord("payload is not an object")
        categories = raw.get("data")
        if not isinstance(categories, list):
            raise MalformedRecord("payload has no data list")
        for category in categories:
            events = category.get("events") if isinstance(category, Mapping) else None
            if not isinstance(events, list):
                RECORDS_SKIPPED.labels(provider=self._name.value, reason="malformed").inc()
                logger.debug("sportybet_category_skipped", category=repr(category)[:80])
                continue
            for event in events:
                if not isinstance(event, Mapping):
                    RECORDS_SKIPPED.labels(provider=self._name.value, reason="malformed").inc()
                    continue
                yield event, category

    def _category_name(self, entry: Mapping[str, Any], context: Mapping[str, Any]) -> Optional[str]:
        return context.get("categoryName")

    def _normalize_entry(
        self, entry: Mapping[str, Any], context: Mapping[str, Any]
    ) -> NormalizedMatch:
        raw_score = entry.get("setScore")
        home_score, away_score = parse_score_string(raw_score)
        return NormalizedMatch(
            provider=self._name,
            home_team=require_str(entry, "homeTeamName"),
            away_team=require_str(entry, "awayTeamName"),
            home_score=home_score,
            away_score=away_score,
            league=str(context.get("categoryName") or ""),
            tournament=str(context.get("name") or ""),
            market_open=evaluate_market(entry, self._missing_market_default),
            raw_score=raw_score,
        )
