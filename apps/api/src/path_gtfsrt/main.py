"""FastAPI application entry point."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from path_gtfsrt.clock import SystemClock
from path_gtfsrt.config import get_settings
from path_gtfsrt.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from path_gtfsrt.metrics import record_alert_update, record_trip_update
from path_gtfsrt.routers.feeds import router as feeds_router
from path_gtfsrt.services.feed import (
    FeedWorker,
    new_port_authority_alert_feed,
    new_trip_update_feed,
)
from path_gtfsrt.services.sources import (
    HttpSourceClient,
    PortAuthorityClient,
    get_static_data,
)

logger = get_logger(__name__)


def _feed_workers(app: FastAPI) -> list[FeedWorker]:
    workers = [
        getattr(app.state, "trip_update_feed", None),
        getattr(app.state, "port_authority_alert_feed", None),
    ]
    return [worker for worker in workers if worker is not None]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Resolve static data and start the feed workers.

    Failing to resolve the static data or to run a feed's first cycle
    aborts startup.
    """
    setup_logging()
    settings = get_settings()
    logger.info("Starting PATH Train GTFS Realtime", environment=settings.environment)

    clock = SystemClock()
    source_client = HttpSourceClient(
        base_url=settings.source_api_base_url,
        timeout_sec=settings.timeout_period_sec,
    )
    static_data = await get_static_data(source_client)

    trip_update_feed = new_trip_update_feed(
        clock,
        settings.trip_update_period_sec,
        source_client,
        static_data,
        on_update=record_trip_update,
        timeout_sec=settings.timeout_period_sec,
    )
    await trip_update_feed.start()
    app.state.trip_update_feed = trip_update_feed

    try:
        if settings.publish_port_authority_alerts:
            logger.info("Publishing Port Authority alerts")
            alert_feed = new_port_authority_alert_feed(
                clock,
                settings.alert_update_period_sec,
                PortAuthorityClient(
                    timeout_sec=settings.alert_timeout_period_sec,
                    base_url=settings.port_authority_base_url,
                    endpoint=settings.port_authority_incidents_endpoint,
                ),
                static_data,
                on_update=record_alert_update,
                timeout_sec=settings.alert_timeout_period_sec,
            )
            await alert_feed.start()
            app.state.port_authority_alert_feed = alert_feed
    except BaseException:
        logger.error("Feed startup failed, stopping started feeds")
        for worker in _feed_workers(app):
            await worker.stop()
        raise

    yield

    for worker in _feed_workers(app):
        await worker.stop()
    logger.info("Shutting down PATH Train GTFS Realtime")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="GTFS Realtime feeds for the PATH train",
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Any:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        bind_request_context(request_id=request_id, path=request.url.path)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        clear_request_context()
        return response

    app.include_router(feeds_router)
    app.mount("/metrics", make_asgi_app())

    @app.get("/health", tags=["meta"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint returning feed worker status."""
        feeds = [worker.get_status() for worker in _feed_workers(app)]

        issues: list[str] = []
        for feed in feeds:
            if not feed["running"]:
                issues.append(f"Feed worker {feed['feed_type']} is not running")
            elif feed["last_error_count"]:
                issues.append(
                    f"Feed {feed['feed_type']} served stale data for "
                    f"{feed['last_error_count']} source(s) in its last update"
                )

        if not feeds or any(not feed["running"] for feed in feeds):
            status = "unhealthy"
        elif issues:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "service": settings.app_name,
            "status": status,
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "feeds": feeds,
            "issues": issues,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    return app


app = create_app()
