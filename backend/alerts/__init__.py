"""
Outbound alert delivery for actionable pairs.
"""
from __future__ import annotations

from typing import Optional

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger

from alerts.base import AlertDispatcher, LoggingDispatcher, format_alert_message
from alerts.telegram import TelegramConfig, TelegramDispatcher

__all__ = [
    "AlertDispatcher",
    "LoggingDispatcher",
    "TelegramConfig",
    "TelegramDispatcher",
    "build_dispatcher",
    "format_alert_message",
]

logger = get_logger(__name__)


def build_dispatcher(settings: Optional[Settings] = None) -> AlertDispatcher:
    """Telegram when alerts are enabled, otherwise log-only."""
    settings = settings or get_settings()
    if not settings.alerts_enabled:
        logger.info("alert_dispatcher_selected", channel=LoggingDispatcher.channel)
        return LoggingDispatcher()
    logger.info(
        "alert_dispatcher_selected",
        channel=TelegramDispatcher.channel,
        bot=settings.telegram_token_safe_log or None,
        chat_id=settings.telegram_chat_id or None,
    )
    return TelegramDispatcher(TelegramConfig.from_settings(settings))
