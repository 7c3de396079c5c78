"""
Field-level normalization shared by the provider adapters.

- Market status: a two-way Home/Away market is open only when both outcomes
  exist and both are active.
- Score parsing: colon-delimited "H:A" strings and integer score fields.
  Anything that does not parse raises MalformedRecord so the adapter drops the
  entry instead of inventing a 0.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from shared.utils.logging import get_logger

logger = get_logger(__name__)

HOME_OUTCOME = "Home"
AWAY_OUTCOME = "Away"


class MalformedRecord(ValueError):
    """A single provider entry could not be normalized."""


# ── Market status ───────────────────────────────────────────────────────

def _find_outcome(outcomes: Iterable[Any], desc: str) -> Optional[Mapping[str, Any]]:
    for outcome in outcomes:
        if isinstance(outcome, Mapping) and outcome.get("desc") == desc:
            return outcome
    return None


def _is_active(outcome: Optional[Mapping[str, Any]]) -> bool:
    if outcome is None:
        return False
    flag = outcome.get("isActive")
    # Providers send 1/0 or true/false
    return flag is True or (isinstance(flag, int) and not isinstance(flag, bool) and flag == 1)


def is_market_open(outcomes: Any) -> bool:
    """
    Return True only if both the Home and the Away outcome exist and are active.

    A missing, empty, or non-list outcomes value is treated as closed.
    """
    if not isinstance(outcomes, list) or not outcomes:
        return False
    return _is_active(_find_outcome(outcomes, HOME_OUTCOME)) and _is_active(
        _find_outcome(outcomes, AWAY_OUTCOME)
    )


def evaluate_market(event: Mapping[str, Any], missing_default: bool) -> bool:
    """
    Derive market_open for a raw event.

    No "markets" key at all means the provider carries no market data for this
    event and the configured default applies. A market that is present but has
    no usable outcomes is closed.
    """
    markets = event.get("markets")
    if markets is None:
        return missing_default
    if not isinstance(markets, list) or not markets or not isinstance(markets[0], Mapping):
        return False
    return is_market_open(markets[0].get("outcomes"))


# ── Scores ──────────────────────────────────────────────────────────────

def coerce_score(value: Any) -> int:
    """Accept a non-negative int or a digit string; reject everything else."""
    if isinstance(value, bool):
        raise MalformedRecord(f"boolean score: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise MalformedRecord(f"negative score: {value}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    raise MalformedRecord(f"unparseable score: {value!r}")


def parse_score_string(score: Any) -> tuple[int, int]:
    """Parse "H:A" into (home, away)."""
    if not isinstance(score, str):
        raise MalformedRecord(f"score is not a string: {score!r}")
    parts = score.split(":")
    if len(parts) != 2:
        raise MalformedRecord(f"score is not H:A: {score!r}")
    return coerce_score(parts[0]), coerce_score(parts[1])


def require_str(container: Mapping[str, Any], key: str) -> str:
    """Fetch a non-empty string field or raise MalformedRecord."""
    value = container.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedRecord(f"missing {key}")
    return value.strip()


def require_mapping(container: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = container.get(key)
    if not isinstance(value, Mapping):
        raise MalformedRecord(f"missing {key}")
    return value
