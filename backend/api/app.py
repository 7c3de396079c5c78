"""
FastAPI application factory for the scorelag API service.

Creates the app with:
- Push ingestion endpoint (POST /api/setevents) in push/hybrid mode
- Middleware stack
- Health check endpoint
- Plain-text catch-all for every other path
- Lifespan management: engine startup/shutdown and the background poll loop
"""
from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import get_engine, init_dependencies, reset_dependencies
from api.middleware import setup_middleware
from arbiter.engine import ArbitrageEngine, build_engine, run_poll_loop

logger = get_logger(__name__)

NOT_A_WEBSITE = "This isn't a website but an api"
PUSH_ACCEPTED = "Data received successfully"
PUSH_REJECTED = "No live match"

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without live providers."""
    yield


def build_lifespan(settings: Settings) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """
    Application lifespan manager bound to one Settings instance.
    Builds and starts the engine, launches the poll loop when the service mode
    polls, and tears both down on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging("api")
        if settings.metrics_enabled:
            start_metrics_server(settings.metrics_port)

        engine = build_engine(settings)
        await engine.start()
        init_dependencies(engine)

        poll_task: Optional[asyncio.Task[None]] = None
        if settings.service_mode.polls:
            poll_task = asyncio.create_task(run_poll_loop(engine))

        logger.info(
            "api_service_started",
            host=settings.api_host,
            port=settings.api_port,
            mode=settings.service_mode.value,
        )

        yield

        # Shutdown
        if poll_task is not None:
            poll_task.cancel()
            try:
                await poll_task
            except asyncio.CancelledError:
                pass

        await engine.close()
        reset_dependencies()
        logger.info("api_service_stopped")

    return lifespan


async def _read_json_body(request: Request) -> Any:
    """Request body as JSON; anything that does not parse is treated as empty."""
    try:
        return await request.json()
    except ValueError:
        return {}


def create_app(*, use_lifespan: bool = True, settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing without live providers."""
    settings = settings or get_settings()

    app = FastAPI(
        title="scorelag API",
        description="Live score discrepancy alerts between a fast feed and a betting market",
        version="0.1.0",
        lifespan=build_lifespan(settings) if use_lifespan else _noop_lifespan,
        docs_url=None,
        redoc_url=None,
    )

    setup_middleware(app)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    if settings.service_mode.accepts_push:

        @app.post("/api/setevents", tags=["ingest"])
        async def set_events(
            request: Request, engine: ArbitrageEngine = Depends(get_engine)
        ) -> PlainTextResponse:
            """Run a cycle against a pushed signal snapshot ({"events": [...]})."""
            body = await _read_json_body(request)
            matches = engine.signal_provider.normalize(body)
            if not matches:
                logger.info("push_rejected_no_matches")
                return PlainTextResponse(PUSH_REJECTED, status_code=400)

            await engine.run_push_cycle(matches)
            return PlainTextResponse(PUSH_ACCEPTED)

    # Must stay last so it never shadows the routes above
    @app.api_route("/{full_path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def catch_all(full_path: str) -> PlainTextResponse:
        return PlainTextResponse(NOT_A_WEBSITE)

    return app


# For running with uvicorn directly
app = create_app()
