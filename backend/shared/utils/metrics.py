"""
Prometheus metrics for scorelag.
Counters are process-local; scrape via start_metrics_server().
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
PROVIDER_REQUESTS = Counter(
    "sl_provider_requests_total",
    "Total provider HTTP requests",
    ["provider", "status"],
)
RECORDS_NORMALIZED = Counter(
    "sl_records_normalized_total",
    "Provider entries turned into normalized matches",
    ["provider"],
)
RECORDS_SKIPPED = Counter(
    "sl_records_skipped_total",
    "Provider entries dropped during normalization",
    ["provider", "reason"],
)
PAIRS_CORRELATED = Counter(
    "sl_pairs_correlated_total",
    "Signal/market record pairs judged to be the same match",
    ["mode"],
)
ALERTS_ACTIONABLE = Counter(
    "sl_alerts_actionable_total",
    "Correlated pairs that passed score and market checks",
    ["advantage"],
)
ALERTS_SUPPRESSED = Counter(
    "sl_alerts_suppressed_total",
    "Pairs with a score advantage rejected because the market was suspended",
    ["authority"],
)
ALERT_DELIVERIES = Counter(
    "sl_alert_deliveries_total",
    "Outbound notification attempts by outcome",
    ["channel", "outcome"],
)
CYCLES = Counter(
    "sl_cycles_total",
    "Pipeline cycles run",
    ["trigger", "outcome"],
)

# ── Histograms ──────────────────────────────────────────────────────────
PROVIDER_LATENCY = Histogram(
    "sl_provider_latency_seconds",
    "Provider request latency in seconds",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0),
)
CYCLE_DURATION = Histogram(
    "sl_cycle_duration_seconds",
    "Wall time of a full fetch-correlate-detect-dispatch cycle",
    ["trigger"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
NOTIFY_LATENCY = Histogram(
    "sl_notify_latency_seconds",
    "Outbound notification request latency in seconds",
    ["channel"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
