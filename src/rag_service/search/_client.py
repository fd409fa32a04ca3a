"""HTTP client helpers for the Serper.dev search API.

Private to the ``search`` package; callers use :func:`search` (settings
aware) or :func:`fetch_serper` (explicit parameters).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx
from pydantic import ValidationError

from rag_service.core.exceptions import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamServiceError,
)
from rag_service.core.http import parse_retry_after
from rag_service.core.schemas.search import SearchResponse
from rag_service.search.config import (
    DEFAULT_NUM_RESULTS,
    DEFAULT_TIME_RANGE,
    SERPER_API_URL,
    SERVICE_NAME,
)

if TYPE_CHECKING:
    from rag_service.config.settings import Settings

logger = logging.getLogger(__name__)


def build_search_query(query: str, site_filter: Optional[str] = None) -> str:
    """Collapse whitespace in ``query`` and append a ``site:`` restriction.

    Args:
        query: Free-text search terms.
        site_filter: Optional host name, e.g. ``"www.btselem.org"``.

    Returns:
        The query string sent to Google.
    """
    terms = " ".join(query.split())
    if site_filter:
        terms = f"{terms} site:{site_filter}"
    return terms


async def fetch_serper(
    client: httpx.AsyncClient,
    query: str,
    api_key: str,
    *,
    num: int = DEFAULT_NUM_RESULTS,
    time_range: Optional[str] = DEFAULT_TIME_RANGE,
    site_filter: Optional[str] = None,
) -> SearchResponse:
    """Run one Serper.dev search.

    Args:
        client: Shared HTTP client.
        query: Search terms.
        api_key: Serper.dev API key.
        num: Number of organic results requested.
        time_range: Google ``tbs`` filter, or ``None`` for no restriction.
        site_filter: Optional host to restrict results to.

    Returns:
        The parsed :class:`SearchResponse`.

    Raises:
        UpstreamRateLimitError: On HTTP 429.
        UpstreamAuthError: On HTTP 401 or 403.
        UpstreamServiceError: On other non-2xx responses, network errors or
            an unparseable body.
    """
    payload: dict[str, Any] = {"q": build_search_query(query, site_filter), "num": num}
    if time_range:
        payload["tbs"] = time_range
    headers = {
        "X-API-KEY": api_key,
        "Content-Type": "application/json",
    }
    logger.info("search: serper query=%r num=%d", payload["q"], num)
    body = await _post_serper(client, payload, headers)

    try:
        response = SearchResponse.model_validate(body)
    except ValidationError as exc:
        raise UpstreamServiceError(
            f"serper: unexpected response shape — {exc.error_count()} validation errors",
            service=SERVICE_NAME,
        ) from exc
    logger.info("search: serper returned %d organic results", len(response.organic))
    return response


async def search(
    client: httpx.AsyncClient,
    query: str,
    settings: Settings,
) -> SearchResponse:
    """Run :func:`fetch_serper` with parameters taken from ``settings``.

    Raises:
        ConfigurationError: If ``SERPER_API_KEY`` is not configured.
    """
    if not settings.serper_api_key:
        raise ConfigurationError("SERPER_API_KEY not set")
    return await fetch_serper(
        client,
        query,
        settings.serper_api_key,
        num=settings.search_num_results,
        time_range=settings.search_time_range,
        site_filter=settings.search_site_filter,
    )


async def _post_serper(
    client: httpx.AsyncClient,
    payload: dict[str, Any],
    headers: dict[str, str],
) -> dict[str, Any]:
    """Execute the Serper.dev POST and return the decoded JSON body.

    Raises:
        UpstreamRateLimitError: On HTTP 429.
        UpstreamAuthError: On HTTP 401 or 403.
        UpstreamServiceError: On other HTTP errors or network failures.
    """
    try:
        response = await client.post(SERPER_API_URL, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        code = exc.response.status_code
        if code == 429:
            retry_after = parse_retry_after(exc.response.headers.get("Retry-After"))
            raise UpstreamRateLimitError(
                "serper: HTTP 429 — rate limited",
                retry_after=retry_after,
                service=SERVICE_NAME,
            ) from exc
        if code in (401, 403):
            raise UpstreamAuthError(
                f"serper: HTTP {code} — invalid API key",
                service=SERVICE_NAME,
            ) from exc
        raise UpstreamServiceError(
            f"serper: HTTP {code} — {exc.response.text[:200]}",
            service=SERVICE_NAME,
        ) from exc
    except httpx.RequestError as exc:
        raise UpstreamServiceError(
            f"serper: network error — {exc}",
            service=SERVICE_NAME,
        ) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamServiceError(
            "serper: response body is not JSON",
            service=SERVICE_NAME,
        ) from exc
