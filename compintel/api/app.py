"""FastAPI application factory.

Lifespan
--------
On startup the app builds one :class:`ScrapeEngine` (shared across all
requests via ``request.app.state.engine``) so the response cache and the
per-domain rate limiter are process-wide, plus the snapshot store behind
``/scrape/latest``.  On shutdown the engine closes its HTTP client.

Routers
-------
    /scrape    run a scrape, read back the latest stored result
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compintel.api.routers import scrape as scrape_router
from compintel.collaborators import InMemorySnapshotStore
from compintel.log import configure_logging
from compintel.scraper import ScrapeEngine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine on startup and close it on shutdown.

    An engine or store already placed on ``app.state`` (tests do this) is
    used as-is.
    """
    configure_logging()
    if getattr(app.state, "engine", None) is None:
        app.state.engine = ScrapeEngine()
    if getattr(app.state, "store", None) is None:
        app.state.store = InMemorySnapshotStore()
    try:
        yield
    finally:
        app.state.engine.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="compintel API",
        description=(
            "HTTP interface for the competitive-intelligence scraping engine. "
            "Turns a competitor URL into pricing, coupons, discounts, features "
            "and call-to-action buttons with confidence scores."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn compintel.api.app:app --reload
app = create_app()
