"""
Central configuration for all scorelag services.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class ServiceMode(str, Enum):
    """How cycles are triggered: timer only, inbound push only, or both."""
    POLL = "poll"
    PUSH = "push"
    HYBRID = "hybrid"

    @property
    def polls(self) -> bool:
        return self in (ServiceMode.POLL, ServiceMode.HYBRID)

    @property
    def accepts_push(self) -> bool:
        return self in (ServiceMode.PUSH, ServiceMode.HYBRID)


class Settings(BaseSettings):
    """Root settings shared across all services."""

    model_config = SettingsConfigDict(
        env_prefix="SL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    service_mode: ServiceMode = ServiceMode.POLL
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Pod/container ID bound to every log line")

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 3001

    # ── Providers ────────────────────────────────────────────
    sofascore_base_url: str = "https://www.sofascore.com"
    sofascore_live_path: str = "/api/v1/sport/football/events/live"
    sofascore_user_agent: str = Field(
        default="Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko)",
        description="SofaScore rejects requests without a browser-like UA",
    )
    sportybet_base_url: str = "https://www.sportybet.com"
    sportybet_events_path: str = "/api/ng/factsCenter/configurableLiveOrPrematchEvents"
    sportybet_sport_id: str = "sr:sport:1"
    provider_request_timeout_s: float = 10.0

    # ── Alerts ───────────────────────────────────────────────
    alerts_enabled: bool = True
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout_s: float = 10.0

    @model_validator(mode="after")
    def use_bare_bot_env_fallback(self) -> "Settings":
        """Use BOT_TOKEN / CHAT_ID from env when the SL_ variants are not set."""
        if not self.telegram_bot_token:
            self.telegram_bot_token = os.environ.get("BOT_TOKEN", "")
        if not self.telegram_chat_id:
            self.telegram_chat_id = os.environ.get("CHAT_ID", "")
        return self

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @property
    def telegram_token_safe_log(self) -> str:
        """Token with everything but the bot id redacted, for logging only."""
        token = self.telegram_bot_token
        if not token:
            return ""
        bot_id, _, _ = token.partition(":")
        return f"{bot_id}:***"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
