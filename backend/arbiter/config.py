"""
Arbiter configuration.
Uses SL_ARBITER_ prefix; holds the correlation and alerting policy plus cycle timing.
"""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.enums import CorrelationMode, SuspensionAuthority


class ArbiterSettings(BaseSettings):
    """Policy and timing for the fetch-correlate-detect-dispatch pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="SL_ARBITER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Timing (seconds)
    poll_interval_s: float = Field(default=180.0, description="Timer-triggered cycle cadence")
    fetch_timeout_s: float = Field(default=15.0, description="Upper bound on one provider fetch")

    # Policy
    correlation_mode: CorrelationMode = Field(
        default=CorrelationMode.HOME_AND_AWAY,
        description="home_only matches on home names; home_and_away requires both",
    )
    suspension_authority: SuspensionAuthority = Field(
        default=SuspensionAuthority.MARKET,
        description="Whose market_open flag gates an alert",
    )
    missing_market_default: bool = Field(
        default=False,
        description="market_open for records whose provider sent no market data",
    )
    virtual_league_marker: str = Field(
        default="Simulated Reality League",
        description="Category name of simulated leagues to drop",
    )


def get_arbiter_settings() -> ArbiterSettings:
    """Load arbiter settings."""
    return ArbiterSettings()
