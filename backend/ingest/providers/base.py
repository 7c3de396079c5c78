"""
Abstract base class for live-score providers.
Defines the contract every provider adapter implements: fetch a raw snapshot,
then normalize it into NormalizedMatch records.
"""
from __future__ import annotations

import abc
import time
from typing import Any, Iterator, Mapping, Optional

from pydantic import ValidationError

from ingest.normalization.normalizer import MalformedRecord
from shared.models.domain import NormalizedMatch
from shared.models.enums import ProviderName, SourceRole
from shared.utils.http_client import ProviderFetchError, ProviderHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import RECORDS_NORMALIZED, RECORDS_SKIPPED

logger = get_logger(__name__)

DEFAULT_VIRTUAL_LEAGUE = "Simulated Reality League"


class ProviderResult:
    """Container for one provider snapshot with fetch metadata."""

    def __init__(
        self,
        provider: ProviderName,
        role: SourceRole,
        success: bool,
        latency_ms: float,
        matches: Optional[list[NormalizedMatch]] = None,
        error: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.role = role
        self.success = success
        self.latency_ms = latency_ms
        self.matches = matches or []
        self.error = error

    @classmethod
    def failed(
        cls, provider: ProviderName, role: SourceRole, latency_ms: float, error: str
    ) -> "ProviderResult":
        return cls(provider=provider, role=role, success=False, latency_ms=latency_ms, error=error)


class BaseProvider(abc.ABC):
    """
    Abstract base class for live-score providers.

    Subclasses describe the payload shape (_iter_entries, _category_name,
    _normalize_entry) and how to fetch it (_fetch_raw). The base class owns the
    skip-and-continue policy, virtual league filtering and fetch bookkeeping.
    """

    def __init__(
        self,
        name: ProviderName,
        role: SourceRole,
        http_client: ProviderHTTPClient,
        missing_market_default: bool = False,
        virtual_league_marker: str = DEFAULT_VIRTUAL_LEAGUE,
    ) -> None:
        self._name = name
        self._role = role
        self._http = http_client
        self._missing_market_default = missing_market_default
        self._virtual_league_marker = virtual_league_marker

    @property
    def name(self) -> ProviderName:
        return self._name

    @property
    def role(self) -> SourceRole:
        return self._role

    async def start(self) -> None:
        """Initialize the provider HTTP client."""
        await self._http.start()

    async def close(self) -> None:
        """Shutdown the provider HTTP client."""
        await self._http.close()

    def is_virtual(self, category_name: Optional[str]) -> bool:
        return category_name == self._virtual_league_marker

    # ── Normalization ───────────────────────────────────────────────────
    def normalize(self, raw: Any) -> list[NormalizedMatch]:
        """
        Turn a raw provider snapshot into normalized matches.

        A malformed top-level payload yields an empty list; a malformed entry
        is skipped and the rest of the batch continues.
        """
        try:
            entries = list(self._iter_entries(raw))
        except MalformedRecord as exc:
            RECORDS_SKIPPED.labels(provider=self._name.value, reason="payload").inc()
            logger.warning("provider_payload_malformed", provider=self._name.value, error=str(exc))
            return []

        matches: list[NormalizedMatch] = []
        for entry, context in entries:
            try:
                if self.is_virtual(self._category_name(entry, context)):
                    RECORDS_SKIPPED.labels(provider=self._name.value, reason="virtual").inc()
                    continue
                matches.append(self._normalize_entry(entry, context))
            except (MalformedRecord, ValidationError) as exc:
                RECORDS_SKIPPED.labels(provider=self._name.value, reason="malformed").inc()
                logger.debug("provider_entry_skipped", provider=self._name.value, error=str(exc))

        RECORDS_NORMALIZED.labels(provider=self._name.value).inc(len(matches))
        return matches

    # ── Fetch ───────────────────────────────────────────────────────────
    async def fetch_snapshot(self) -> ProviderResult:
        """
        Fetch and normalize the provider's live snapshot.

        Never raises for provider-side problems: failures come back as an
        unsuccessful ProviderResult with no matches.
        """
        start = time.perf_counter()
        try:
            raw = await self._fetch_raw()
        except ProviderFetchError as exc:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning("provider_fetch_failed", provider=self._name.value, error=exc.reason)
            return ProviderResult.failed(self._name, self._role, latency_ms, exc.reason)

        matches = self.normalize(raw)
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "provider_snapshot",
            provider=self._name.value,
            role=self._role.value,
            matches=len(matches),
            latency_ms=round(latency_ms, 2),
        )
        return ProviderResult(
            provider=self._name,
            role=self._role,
            success=True,
            latency_ms=latency_ms,
            matches=matches,
        )

    # ── Abstract methods (each provider implements these) ───────────────
    @abc.abstractmethod
    async def _fetch_raw(self) -> Any:
        """Provider-specific request; raises ProviderFetchError on failure."""
        ...

    @abc.abstractmethod
    def _iter_entries(self, raw: Any) -> Iterator[tuple[Mapping[str, Any], Mapping[str, Any]]]:
        """
        Yield (entry, context) pairs from a raw payload.

        context carries enclosing data (e.g. the category an event sits in).
        Raises MalformedRecord when the payload itself is unusable.
        """
        ...

    @abc.abstractmethod
    def _category_name(self, entry: Mapping[str, Any], context: Mapping[str, Any]) -> Optional[str]:
        """Category name checked against the virtual league marker."""
        ...

    @abc.abstractmethod
    def _normalize_entry(
        self, entry: Mapping[str, Any], context: Mapping[str, Any]
    ) -> NormalizedMatch:
        """Build one record; raises MalformedRecord on bad fields."""
        ...
