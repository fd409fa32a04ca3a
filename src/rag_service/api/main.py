"""FastAPI application factory and entry point.

Creates the application instance, registers middleware and exception
handlers, mounts the route routers and owns the lifecycle of the shared
browser scraper and HTTP client.

Usage::

    # Development server (from project root)
    uvicorn rag_service.api.main:app --reload

    # Or with host/port from settings
    python -m rag_service.api.main
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

import httpx
import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rag_service import __version__
from rag_service.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from rag_service.config.settings import get_settings
from rag_service.core.exceptions import RagServiceError
from rag_service.core.logging_config import configure_logging, request_id_var
from rag_service.core.schemas.agent import ErrorResponse, HealthResponse
from rag_service.scraper.browser_scraper import BrowserScraper

# ---------------------------------------------------------------------------
# Logging configuration is applied once at module import time so that log
# records emitted during app construction are captured correctly.
# The log level is re-applied inside create_app() after settings are loaded.
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    *,
    scraper: Optional[BrowserScraper] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        scraper: Pre-built scraper to use instead of launching one.  The
            caller keeps ownership; it is not closed on shutdown.
        http_client: Pre-built HTTP client, with the same ownership rule.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    # Re-apply logging with the configured level and the keys to scrub.
    configure_logging(
        settings.log_level,
        secret_values=(settings.serper_api_key, settings.openrouter_api_key),
    )

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        owns_scraper = scraper is None
        owns_client = http_client is None

        application.state.scraper = scraper or BrowserScraper.from_settings(settings)
        application.state.http_client = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout_seconds
        )

        if owns_scraper:
            try:
                await application.state.scraper.start()
            except RagServiceError as exc:
                # First scrape retries the launch.
                logger.warning("browser_start_failed", error=str(exc))

        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
            browser_running=application.state.scraper.is_running,
        )
        try:
            yield
        finally:
            if owns_client:
                await application.state.http_client.aclose()
            if owns_scraper:
                await application.state.scraper.close()
            logger.info("application_shutdown")

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Retrieval-augmented answering over live web pages scraped with a "
            "shared headless browser."
        ),
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration, and record metrics.

        Attaches a unique ``request_id`` to the structlog context so that all
        log lines emitted during a request can be correlated.
        """
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            status_code = getattr(response, "status_code", 500)
            http_requests_total.labels(
                method=request.method, path=request.url.path, status=str(status_code)
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method, path=request.url.path
            ).observe(elapsed)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Exception handlers -----------------------------------------------

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies in the service's error envelope."""
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid value") if errors else "invalid value"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error="VALIDATION_ERROR",
                message=f"Invalid request body: {detail}",
            ).model_dump(),
        )

    @application.exception_handler(RagServiceError)
    async def service_error_handler(request: Request, exc: RagServiceError) -> JSONResponse:
        """Map any service failure that escapes a route to HTTP 500."""
        logger.error("request_failed", error_type=type(exc).__name__, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="INTERNAL_SERVER_ERROR", message=str(exc)).model_dump(),
        )

    # ---- Routers ------------------------------------------------------------

    from rag_service.api.routes import agent, health as health_routes  # noqa: PLC0415

    application.include_router(health_routes.router)
    application.include_router(agent.router)

    # ---- System endpoints ---------------------------------------------------

    @application.get("/health", tags=["system"], response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Return a minimal process-level liveness status without any I/O."""
        return HealthResponse.ok()

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def metrics() -> Response:
            """Expose Prometheus metrics in text format."""
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn.
"""


def run() -> None:
    """Serve :data:`app` with Uvicorn on the configured host and port."""
    import uvicorn  # noqa: PLC0415

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
