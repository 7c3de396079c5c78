"""
Telegram Bot API alerter.

Sends each alert with GET /bot<token>/sendMessage. Messages in a batch go out
concurrently; a failed send is logged and reported in its DeliveryResult
without affecting the others.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from shared.config import Settings
from shared.models.domain import CorrelatedPair, DeliveryResult
from shared.utils.logging import get_logger
from shared.utils.metrics import ALERT_DELIVERIES, NOTIFY_LATENCY, atrack_latency

from alerts.base import AlertDispatcher, format_alert_message

logger = get_logger(__name__)


@dataclass(frozen=True)
class TelegramConfig:
    """Bot credentials and transport settings."""
    bot_token: str = ""
    chat_id: str = ""
    api_base: str = "https://api.telegram.org"
    timeout_s: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.bot_token) and bool(self.chat_id)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramConfig":
        return cls(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            api_base=settings.telegram_api_base,
            timeout_s=settings.telegram_timeout_s,
        )


class TelegramDispatcher(AlertDispatcher):
    """Telegram bot dispatcher with a persistent HTTP client."""

    channel = "telegram"

    def __init__(
        self,
        config: TelegramConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None
        self.logger = logger.bind(component="telegram_dispatcher")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_s, connect=5.0),
            )
        return self._client

    def _redact(self, text: str) -> str:
        if self._config.bot_token:
            return text.replace(self._config.bot_token, "***")
        return text

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send_message(self, text: str) -> None:
        """Send one message; raises httpx.HTTPError or httpx.InvalidURL on failure."""
        client = self._get_client()
        async with atrack_latency(NOTIFY_LATENCY, channel=self.channel):
            resp = await client.get(
                f"{self._config.api_base}/bot{self._config.bot_token}/sendMessage",
                params={"chat_id": self._config.chat_id, "text": text},
            )
        resp.raise_for_status()

    async def _deliver(self, pair: CorrelatedPair) -> DeliveryResult:
        try:
            await self.send_message(format_alert_message(pair))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            error = self._redact(str(exc))
            ALERT_DELIVERIES.labels(channel=self.channel, outcome="failed").inc()
            self.logger.error(
                "telegram_send_failed",
                match=pair.signal.display_name,
                error_type=type(exc).__name__,
                error=error,
            )
            return DeliveryResult(pair=pair, error=f"{type(exc).__name__}: {error}")

        ALERT_DELIVERIES.labels(channel=self.channel, outcome="delivered").inc()
        self.logger.info("telegram_message_sent", match=pair.signal.display_name)
        return DeliveryResult(pair=pair, delivered=True)

    async def dispatch(self, pairs: Sequence[CorrelatedPair]) -> list[DeliveryResult]:
        if not pairs:
            return []
        if not self._config.configured:
            ALERT_DELIVERIES.labels(channel=self.channel, outcome="skipped").inc(len(pairs))
            self.logger.warning("telegram_credentials_missing", pending=len(pairs))
            return [DeliveryResult(pair=pair, skipped=True) for pair in pairs]
        return list(await asyncio.gather(*(self._deliver(pair) for pair in pairs)))
