"""
Discrepancy detector tests.

Run: pytest backend/tests/test_detector.py -v
"""
from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from arbiter.detector import DiscrepancyDetector, score_advantage
from shared.models.domain import CorrelatedPair, NormalizedMatch
from shared.models.enums import ProviderName, ScoreAdvantage, SuspensionAuthority


def _pair(
    signal_score: tuple[int, int],
    market_score: tuple[int, int],
    market_open: bool = True,
    signal_open: bool = False,
) -> CorrelatedPair:
    signal = NormalizedMatch(
        provider=ProviderName.SOFASCORE,
        home_team="Arsenal",
        away_team="Chelsea",
        home_score=signal_score[0],
        away_score=signal_score[1],
        market_open=signal_open,
    )
    market = NormalizedMatch(
        provider=ProviderName.SPORTYBET,
        home_team="Arsenal FC",
        away_team="Chelsea FC",
        home_score=market_score[0],
        away_score=market_score[1],
        market_open=market_open,
        raw_score=f"{market_score[0]}:{market_score[1]}",
    )
    return CorrelatedPair(signal=signal, market=market)


@pytest.fixture
def detector() -> DiscrepancyDetector:
    return DiscrepancyDetector()


class TestScoreAdvantage:
    def test_home_ahead(self) -> None:
        assert score_advantage(_pair((1, 0), (0, 0))) is ScoreAdvantage.HOME

    def test_away_ahead(self) -> None:
        assert score_advantage(_pair((0, 1), (0, 0))) is ScoreAdvantage.AWAY

    def test_equal(self) -> None:
        assert score_advantage(_pair((2, 1), (2, 1))) is None

    def test_signal_behind(self) -> None:
        assert score_advantage(_pair((0, 0), (1, 1))) is None

    def test_home_checked_first(self) -> None:
        assert score_advantage(_pair((1, 1), (0, 0))) is ScoreAdvantage.HOME

    def test_away_checked_only_when_home_not_ahead(self) -> None:
        # Home behind on the signal side, away ahead
        assert score_advantage(_pair((0, 2), (1, 0))) is ScoreAdvantage.AWAY


class TestDetect:
    def test_home_goal_with_open_market(self, detector: DiscrepancyDetector) -> None:
        assert detector.detect(_pair((1, 0), (0, 0), market_open=True))

    def test_home_goal_with_suspended_market(self, detector: DiscrepancyDetector) -> None:
        assert not detector.detect(_pair((1, 0), (0, 0), market_open=False))

    def test_no_discrepancy_never_fires(self, detector: DiscrepancyDetector) -> None:
        assert not detector.detect(_pair((1, 1), (1, 1), market_open=True))

    def test_evaluate_reports_branch(self, detector: DiscrepancyDetector) -> None:
        alert = detector.evaluate(_pair((0, 1), (0, 0)))
        assert alert is not None
        assert alert.advantage is ScoreAdvantage.AWAY


class TestSuspensionAuthority:
    def test_default_is_market(self) -> None:
        assert DiscrepancyDetector().authority is SuspensionAuthority.MARKET

    def test_market_authority_ignores_signal_flag(self) -> None:
        detector = DiscrepancyDetector(SuspensionAuthority.MARKET)
        assert not detector.detect(_pair((1, 0), (0, 0), market_open=False, signal_open=True))
        assert detector.detect(_pair((1, 0), (0, 0), market_open=True, signal_open=False))

    def test_signal_authority_ignores_market_flag(self) -> None:
        detector = DiscrepancyDetector(SuspensionAuthority.SIGNAL)
        assert detector.detect(_pair((1, 0), (0, 0), market_open=False, signal_open=True))
        assert not detector.detect(_pair((1, 0), (0, 0), market_open=True, signal_open=False))


class TestAuditLog:
    def test_suspended_pair_still_logs_market_record(self, detector: DiscrepancyDetector) -> None:
        with capture_logs() as logs:
            fired = detector.detect(_pair((1, 0), (0, 0), market_open=False))

        assert fired is False
        events = [entry["event"] for entry in logs]
        assert events == ["score_advantage_found", "market_suspended"]
        found = logs[0]
        assert found["advantage"] == "home"
        assert found["market"]["home_team"] == "Arsenal FC"
        assert found["market"]["market_open"] is False

    def test_open_pair_logs_advantage_only(self, detector: DiscrepancyDetector) -> None:
        with capture_logs() as logs:
            assert detector.detect(_pair((0, 1), (0, 0), market_open=True))

        assert [entry["event"] for entry in logs] == ["score_advantage_found"]

    def test_no_advantage_logs_nothing(self, detector: DiscrepancyDetector) -> None:
        with capture_logs() as logs:
            assert not detector.detect(_pair((1, 1), (1, 1), market_open=False))

        assert logs == []


def test_actionable_keeps_input_order(detector: DiscrepancyDetector) -> None:
    pairs = [
        _pair((1, 0), (0, 0)),
        _pair((0, 0), (0, 0)),
        _pair((2, 2), (2, 1)),
        _pair((1, 0), (0, 0), market_open=False),
    ]
    alerts = detector.actionable(pairs)
    assert [a.pair for a in alerts] == [pairs[0], pairs[2]]
    assert [a.advantage for a in alerts] == [ScoreAdvantage.HOME, ScoreAdvantage.AWAY]
