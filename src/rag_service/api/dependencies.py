"""FastAPI dependency injection providers.

The browser scraper and the shared HTTP client are created once in the
application lifespan and stored on ``app.state``; these providers hand them
to route handlers.  Tests replace :func:`get_workflow` through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request

from rag_service.agent.workflow import AgentWorkflow
from rag_service.config.settings import Settings, get_settings
from rag_service.scraper.browser_scraper import BrowserScraper


def get_scraper(request: Request) -> BrowserScraper:
    """Return the application's shared :class:`BrowserScraper`."""
    return request.app.state.scraper


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the application's shared ``httpx.AsyncClient``."""
    return request.app.state.http_client


def get_workflow(
    scraper: Annotated[BrowserScraper, Depends(get_scraper)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AgentWorkflow:
    """Build a per-request :class:`AgentWorkflow` over the shared resources."""
    return AgentWorkflow(scraper, client, settings)
