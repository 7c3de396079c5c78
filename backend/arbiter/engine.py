"""
Arbitrage pipeline engine.
Fetches both providers, correlates, detects and dispatches; one cycle at a
time whether triggered by the timer or by an inbound push.
"""
from __future__ import annotations

import asyncio
import time
from typing import Optional, Sequence

from alerts import build_dispatcher
from alerts.base import AlertDispatcher
from ingest.providers.base import BaseProvider, ProviderResult
from ingest.providers.registry import ProviderRegistry, build_default_registry
from shared.config import Settings, get_settings
from shared.models.domain import CycleReport, NormalizedMatch
from shared.models.enums import CycleTrigger
from shared.utils.logging import cycle_context, get_logger
from shared.utils.metrics import CYCLE_DURATION, CYCLES

from arbiter.config import ArbiterSettings, get_arbiter_settings
from arbiter.correlator import correlate
from arbiter.detector import DiscrepancyDetector

logger = get_logger(__name__)


class ArbitrageEngine:
    """Runs cycles: fetch (concurrently) -> correlate -> detect -> dispatch."""

    def __init__(
        self,
        registry: ProviderRegistry,
        dispatcher: AlertDispatcher,
        settings: Optional[ArbiterSettings] = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._settings = settings or get_arbiter_settings()
        self._detector = DiscrepancyDetector(self._settings.suspension_authority)
        # Serializes timer and push cycles
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> ArbiterSettings:
        return self._settings

    @property
    def signal_provider(self) -> BaseProvider:
        return self._registry.signal

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def start(self) -> None:
        await self._registry.start_all()
        logger.info(
            "arbiter_engine_started",
            correlation_mode=self._settings.correlation_mode.value,
            suspension_authority=self._settings.suspension_authority.value,
            missing_market_default=self._settings.missing_market_default,
        )

    async def close(self) -> None:
        await self._registry.close_all()
        await self._dispatcher.close()

    async def _fetch(self, provider: BaseProvider) -> ProviderResult:
        """Fetch one provider under the cycle timeout; failures degrade to an empty set."""
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(
                provider.fetch_snapshot(), timeout=self._settings.fetch_timeout_s
            )
        except asyncio.TimeoutError:
            error = f"timed out after {self._settings.fetch_timeout_s}s"
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            logger.exception("provider_fetch_crashed", provider=provider.name.value)
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning("provider_degraded_to_empty", provider=provider.name.value, error=error)
        return ProviderResult.failed(provider.name, provider.role, latency_ms, error)

    async def run_cycle(self) -> CycleReport:
        """Timer-triggered cycle: both providers are fetched concurrently."""
        async with self._lock:
            with cycle_context(CycleTrigger.TIMER.value):
                start = time.perf_counter()
                signal_result, market_result = await asyncio.gather(
                    self._fetch(self._registry.signal),
                    self._fetch(self._registry.market),
                )
                return await self._process(
                    CycleTrigger.TIMER,
                    signal_result.matches,
                    market_result,
                    start,
                    signal_error=signal_result.error,
                )

    async def run_push_cycle(self, signal_matches: Sequence[NormalizedMatch]) -> CycleReport:
        """Push-triggered cycle: the signal snapshot arrived inbound, only the market is fetched."""
        async with self._lock:
            with cycle_context(CycleTrigger.PUSH.value):
                start = time.perf_counter()
                market_result = await self._fetch(self._registry.market)
                return await self._process(CycleTrigger.PUSH, signal_matches, market_result, start)

    async def _process(
        self,
        trigger: CycleTrigger,
        signal_matches: Sequence[NormalizedMatch],
        market_result: ProviderResult,
        start: float,
        signal_error: Optional[str] = None,
    ) -> CycleReport:
        report = CycleReport(
            trigger=trigger,
            signal_count=len(signal_matches),
            market_count=len(market_result.matches),
        )
        if signal_error:
            report.fetch_errors[self._registry.signal.name.value] = signal_error
        if market_result.error:
            report.fetch_errors[market_result.provider.value] = market_result.error

        pairs = correlate(signal_matches, market_result.matches, self._settings.correlation_mode)
        alerts = self._detector.actionable(pairs)
        report.correlated = len(pairs)
        report.actionable = len(alerts)
        if alerts:
            report.deliveries = await self._dispatcher.dispatch([a.pair for a in alerts])

        elapsed = time.perf_counter() - start
        report.duration_ms = round(elapsed * 1000, 2)
        CYCLE_DURATION.labels(trigger=trigger.value).observe(elapsed)
        CYCLES.labels(
            trigger=trigger.value,
            outcome="degraded" if report.fetch_errors else "ok",
        ).inc()
        logger.info(
            "cycle_complete",
            signal_matches=report.signal_count,
            market_matches=report.market_count,
            correlated=report.correlated,
            actionable=report.actionable,
            delivered=report.delivered,
            failed=report.failed,
            fetch_errors=report.fetch_errors or None,
            duration_ms=report.duration_ms,
        )
        return report


def build_engine(
    settings: Optional[Settings] = None,
    arbiter_settings: Optional[ArbiterSettings] = None,
    dispatcher: Optional[AlertDispatcher] = None,
) -> ArbitrageEngine:
    """Wire the default providers and dispatcher from configuration."""
    settings = settings or get_settings()
    arbiter_settings = arbiter_settings or get_arbiter_settings()
    registry = build_default_registry(
        settings,
        missing_market_default=arbiter_settings.missing_market_default,
        virtual_league_marker=arbiter_settings.virtual_league_marker,
    )
    return ArbitrageEngine(
        registry,
        dispatcher or build_dispatcher(settings),
        arbiter_settings,
    )


async def run_poll_loop(engine: ArbitrageEngine, interval_s: Optional[float] = None) -> None:
    """Run a cycle now and then every interval; a failed cycle never stops the loop."""
    interval = interval_s if interval_s is not None else engine.settings.poll_interval_s
    logger.info("poll_loop_started", interval_s=interval)
    while True:
        try:
            await engine.run_cycle()
        except asyncio.CancelledError:
            logger.info("poll_loop_stopped")
            raise
        except Exception as e:
            CYCLES.labels(trigger=CycleTrigger.TIMER.value, outcome="error").inc()
            logger.exception("poll_cycle_error", error=str(e))
        await asyncio.sleep(interval)
