"""FastAPI application for the crypto rates backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .prices import FeedRelayService, create_stream_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, relay: FeedRelayService | None = None) -> FastAPI:
    """Build the application and its feed relay.

    Raises FeedConfigurationError when the selected feed source can't be
    configured (e.g. FINNHUB_API_KEY missing), so a misconfigured process
    fails at boot rather than at first connection.
    """
    settings = settings if settings is not None else Settings.from_env()
    relay = relay if relay is not None else FeedRelayService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await relay.start()
        try:
            yield
        finally:
            await relay.stop()

    app = FastAPI(title="Crypto Rates API", lifespan=lifespan)
    app.state.settings = settings
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> str:
        return "Crypto Rates API"

    app.include_router(create_stream_router(relay.hub))
    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Crypto Rates API on port %d (CORS origin %s)", settings.port, settings.frontend_url)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
