"""
Dependency injection for the API service.
Provides the shared ArbitrageEngine to route handlers.
"""
from __future__ import annotations

from arbiter.engine import ArbitrageEngine

# Module-level singleton, initialized at startup
_engine: ArbitrageEngine | None = None


def init_dependencies(engine: ArbitrageEngine) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _engine
    _engine = engine


def reset_dependencies() -> None:
    global _engine
    _engine = None


def get_engine() -> ArbitrageEngine:
    """FastAPI dependency: returns the shared ArbitrageEngine."""
    if _engine is None:
        raise RuntimeError("ArbitrageEngine not initialized; call init_dependencies first")
    return _engine
