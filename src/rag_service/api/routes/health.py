"""Deep health check.

``GET /api/health``
    Reports whether the shared browser process is connected.  Always
    returns HTTP 200; ``status`` is ``"ok"`` or ``"degraded"``.  A down
    browser is degraded rather than an error because the scraper relaunches
    it lazily on the next scrape.

The shallow liveness probe ``GET /health`` lives in ``api/main.py``.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request

from rag_service import __version__
from rag_service.core.schemas.agent import DeepHealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["system"])


def _check_browser(request: Request) -> str:
    """Return ``"ok"`` when a connected browser is held, ``"down"`` otherwise."""
    scraper = getattr(request.app.state, "scraper", None)
    if scraper is None:
        return "down"
    return "ok" if scraper.is_running else "down"


@router.get("/api/health", response_model=DeepHealthResponse)
async def system_health(request: Request) -> DeepHealthResponse:
    """Return process health including the browser state."""
    browser_status = _check_browser(request)
    payload = DeepHealthResponse(
        status="ok" if browser_status == "ok" else "degraded",
        browser=browser_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    logger.info("system_health_check", status=payload.status, browser=browser_status)
    return payload
