"""
linkwatch HTTP application.

Starts the link monitoring job with the app and exposes concentrator
lookups, SNMP tooling and an on-demand collector run.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linkwatch.core.config import settings
from linkwatch.db.base import close_db, init_db
from linkwatch.services.scheduler import get_scheduler_service

logging.basicConfig(
    level=logging.INFO if settings.app_debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables and start monitoring; stop both on shutdown."""
    await init_db()

    scheduler = get_scheduler_service()
    if settings.monitoring.enabled:
        scheduler.start_monitoring(settings.monitoring.interval_seconds)
    else:
        logger.warning("Link monitoring disabled by configuration")

    yield

    scheduler.stop()
    await close_db()
    logger.info("linkwatch stopped")


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def health() -> dict[str, Any]:
    scheduler = get_scheduler_service()
    return {
        "status": "ok",
        "version": APP_VERSION,
        "scheduler_running": scheduler.is_running(),
        "scheduled_jobs": len(scheduler.get_jobs()),
    }


def create_app() -> FastAPI:
    from linkwatch.api.endpoints import collector, lookups, snmp

    app = FastAPI(
        title=settings.app_name,
        description="WAN link telemetry and concentrator topology API",
        version=APP_VERSION,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, unhandled_error)

    app.include_router(collector.router, prefix=settings.api_prefix, tags=["Collector"])
    app.include_router(lookups.router, prefix=settings.api_prefix, tags=["Concentrators"])
    app.include_router(snmp.router, prefix=settings.api_prefix, tags=["SNMP"])
    app.add_api_route("/health", health, methods=["GET"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("linkwatch.main:app", host="0.0.0.0", port=8000, reload=settings.app_debug)
