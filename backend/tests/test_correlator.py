"""Correlation tests: team-name similarity and pairing across the two feeds."""
from __future__ import annotations

import pytest

from arbiter.correlator import correlate, same_match, similar
from shared.models.domain import NormalizedMatch
from shared.models.enums import CorrelationMode, ProviderName


def _signal(home: str, away: str) -> NormalizedMatch:
    return NormalizedMatch(provider=ProviderName.SOFASCORE, home_team=home, away_team=away, home_score=0, away_score=0)


def _market(home: str, away: str) -> NormalizedMatch:
    return NormalizedMatch(provider=ProviderName.SPORTYBET, home_team=home, away_team=away, home_score=0, away_score=0)


class TestSimilar:
    @pytest.mark.parametrize(
        "a,b",
        [("Arsenal", "Arsenal FC"), ("Arsenal", "Arsenal"), ("Man Utd", "Man Utd U21"), ("", "Chelsea")],
    )
    def test_containment_is_symmetric(self, a: str, b: str) -> None:
        assert similar(a, b)
        assert similar(b, a)

    def test_unrelated(self) -> None:
        assert not similar("Arsenal", "Chelsea")

    def test_case_sensitive(self) -> None:
        assert not similar("arsenal", "Arsenal FC")


class TestSameMatch:
    def test_home_only_ignores_away(self) -> None:
        assert same_match(_signal("Arsenal", "Chelsea"), _market("Arsenal FC", "Spurs"), CorrelationMode.HOME_ONLY)

    def test_home_and_away_requires_both(self) -> None:
        assert not same_match(
            _signal("Arsenal", "Chelsea"), _market("Arsenal FC", "Spurs"), CorrelationMode.HOME_AND_AWAY
        )
        assert same_match(
            _signal("Arsenal", "Chelsea"), _market("Arsenal FC", "Chelsea FC"), CorrelationMode.HOME_AND_AWAY
        )


class TestCorrelate:
    def test_empty_inputs(self) -> None:
        assert correlate([], [_market("Arsenal", "Chelsea")]) == []
        assert correlate([_signal("Arsenal", "Chelsea")], []) == []

    def test_keeps_all_pairs_signal_major(self) -> None:
        signals = [_signal("Arsenal", "Chelsea"), _signal("Leeds", "Everton")]
        markets = [
            _market("Leeds United", "Everton"),
            _market("Arsenal FC", "Chelsea FC"),
            _market("Arsenal", "Chelsea U21"),
        ]
        pairs = correlate(signals, markets)
        assert [(p.signal.home_team, p.market.home_team) for p in pairs] == [
            ("Arsenal", "Arsenal FC"),
            ("Arsenal", "Arsenal"),
            ("Leeds", "Leeds United"),
        ]

    def test_default_mode_is_home_and_away(self) -> None:
        pairs = correlate([_signal("Arsenal", "Chelsea")], [_market("Arsenal", "Spurs")])
        assert pairs == []

    def test_home_only_mode(self) -> None:
        pairs = correlate(
            [_signal("Arsenal", "Chelsea")], [_market("Arsenal", "Spurs")], CorrelationMode.HOME_ONLY
        )
        assert len(pairs) == 1

    def test_swapping_feeds_gives_same_pair_set(self) -> None:
        a = [_signal("Arsenal", "Chelsea"), _signal("Leeds", "Everton")]
        b = [_signal("Arsenal FC", "Chelsea FC"), _signal("Everton", "Leeds")]
        forward = {(p.signal.display_name, p.market.display_name) for p in correlate(a, b)}
        backward = {(p.market.display_name, p.signal.display_name) for p in correlate(b, a)}
        assert forward == backward
