"""
Market Desk Backend: main FastAPI application
Same-origin proxy for the economic calendar, Yahoo quotes and headline feed.

Run:
    python -m app.main            # listens on $PORT (default 3000)
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings
from app.core.deps import build_services
from app.core.logging import get_logger
from app.routers import calendar, health, quotes
from app.services.calendar import today_in
from app.services.upstream import build_client

log = get_logger("main")


def create_app(
    config: Settings = settings,
    http_client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the app. Tests pass their own `http_client` (e.g. on an httpx.MockTransport)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        http = http_client if http_client is not None else build_client(config.UPSTREAM_TIMEOUT)
        app.state.services = build_services(http, config=config, clock=clock)
        base = f"http://localhost:{config.PORT}"
        log.info(f"Starting {config.APP_NAME} v{config.VERSION} at {base}")
        log.info(
            f"FF calendar:  {base}/api/ff-calendar?date={today_in(config.TIMEZONE)}"
            f"&countries=USD&imp=high,medium,low"
        )
        log.info(f"Quotes:       {base}/api/quotes?symbols={config.DEFAULT_SYMBOLS}")
        yield
        log.info("Shutting down...")
        await http.aclose()

    app = FastAPI(
        title=config.APP_NAME,
        description="Local CORS-safe backend for economic calendar, quotes and headlines.",
        version=config.VERSION,
        debug=config.DEBUG,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: any origin may call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(calendar.router, prefix="/api", tags=["Calendar"])
    app.include_router(quotes.router,   prefix="/api", tags=["Quotes"])

    @app.get("/")
    async def root():
        return {
            "name":    config.APP_NAME,
            "version": config.VERSION,
            "status":  "online",
            "endpoints": ["/api/ff-calendar", "/api/quotes", "/api/yahoo-rss", "/health"],
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
