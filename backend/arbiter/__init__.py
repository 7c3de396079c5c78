"""
Arbiter: pairs live matches across the signal and market feeds and decides
which score discrepancies are still actionable on an open market.
"""
from arbiter.correlator import correlate, similar
from arbiter.detector import DiscrepancyDetector, score_advantage
from arbiter.engine import ArbitrageEngine, build_engine, run_poll_loop

__all__ = [
    "ArbitrageEngine",
    "DiscrepancyDetector",
    "build_engine",
    "correlate",
    "run_poll_loop",
    "score_advantage",
    "similar",
]
