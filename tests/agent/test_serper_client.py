"""Unit tests for the Serper.dev search client."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest
import respx

from rag_service.core.exceptions import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamServiceError,
)
from rag_service.search import build_search_query, fetch_serper, search
from rag_service.search.config import SERPER_API_URL

_SERPER_RESPONSE: dict = {
    "searchParameters": {
        "q": "gaza water site:www.btselem.org",
        "type": "search",
        "engine": "google",
        "num": 5,
    },
    "organic": [
        {
            "title": "Water crisis",
            "link": "https://www.btselem.org/water",
            "snippet": "Access to water ...",
            "position": 1,
            "date": "Mar 3, 2024",
        },
        {
            "title": "Report (PDF)",
            "link": "https://www.btselem.org/download/report.pdf",
            "position": 2,
        },
    ],
    "credits": 1,
}


class TestBuildSearchQuery:
    def test_collapses_whitespace(self) -> None:
        assert build_search_query("  gaza   water \n access ") == "gaza water access"

    def test_appends_site_filter(self) -> None:
        assert build_search_query("gaza water", "www.btselem.org") == (
            "gaza water site:www.btselem.org"
        )


class TestFetchSerper:
    @pytest.mark.asyncio
    async def test_success_parses_response(self) -> None:
        with respx.mock:
            route = respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(200, json=_SERPER_RESPONSE)
            )
            async with httpx.AsyncClient() as client:
                response = await fetch_serper(
                    client, "gaza water", "test-key", site_filter="www.btselem.org"
                )

        assert response.search_parameters.q == "gaza water site:www.btselem.org"
        assert response.search_parameters.search_type == "search"
        assert response.links == [
            "https://www.btselem.org/water",
            "https://www.btselem.org/download/report.pdf",
        ]
        assert response.organic[0].date == "Mar 3, 2024"
        assert response.organic[1].snippet == ""

        request = route.calls.last.request
        assert request.headers["X-API-KEY"] == "test-key"
        assert json.loads(request.content) == {
            "q": "gaza water site:www.btselem.org",
            "num": 5,
            "tbs": "qdr:3y",
        }

    @pytest.mark.asyncio
    async def test_time_range_can_be_disabled(self) -> None:
        with respx.mock:
            route = respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(200, json=_SERPER_RESPONSE)
            )
            async with httpx.AsyncClient() as client:
                await fetch_serper(client, "q", "test-key", num=3, time_range=None)

        assert json.loads(route.calls.last.request.content) == {"q": "q", "num": 3}

    @pytest.mark.asyncio
    async def test_rate_limit(self) -> None:
        with respx.mock:
            respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(429, headers={"Retry-After": "12"})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await fetch_serper(client, "q", "test-key")

        assert exc_info.value.retry_after == 12.0
        assert exc_info.value.service == "serper"

    @pytest.mark.asyncio
    async def test_rate_limit_with_http_date(self) -> None:
        retry_at = format_datetime(
            datetime.now(timezone.utc) + timedelta(seconds=120), usegmt=True
        )
        with respx.mock:
            respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(429, headers={"Retry-After": retry_at})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await fetch_serper(client, "q", "test-key")

        assert 60.0 < exc_info.value.retry_after <= 120.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "soon"])
    async def test_rate_limit_without_usable_header(self, header: str | None) -> None:
        headers = {"Retry-After": header} if header is not None else {}
        with respx.mock:
            respx.post(SERPER_API_URL).mock(return_value=httpx.Response(429, headers=headers))
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await fetch_serper(client, "q", "test-key")

        assert exc_info.value.retry_after == 60.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_errors(self, status_code: int) -> None:
        with respx.mock:
            respx.post(SERPER_API_URL).mock(return_value=httpx.Response(status_code))
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamAuthError):
                    await fetch_serper(client, "q", "bad-key")

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        with respx.mock:
            respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(500, text="Internal Server Error")
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamServiceError) as exc_info:
                    await fetch_serper(client, "q", "test-key")

        assert not isinstance(exc_info.value, (UpstreamAuthError, UpstreamRateLimitError))
        assert "HTTP 500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        with respx.mock:
            respx.post(SERPER_API_URL).mock(side_effect=httpx.ConnectError("refused"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamServiceError, match="network error"):
                    await fetch_serper(client, "q", "test-key")

    @pytest.mark.asyncio
    async def test_unexpected_shape(self) -> None:
        with respx.mock:
            respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(200, json={"organic": []})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamServiceError, match="unexpected response shape"):
                    await fetch_serper(client, "q", "test-key")


class TestSearch:
    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings) -> None:
        settings = settings.model_copy(update={"serper_api_key": None})
        async with httpx.AsyncClient() as client:
            with pytest.raises(ConfigurationError, match="SERPER_API_KEY"):
                await search(client, "q", settings)

    @pytest.mark.asyncio
    async def test_uses_settings(self, settings) -> None:
        settings = settings.model_copy(
            update={"search_num_results": 7, "search_site_filter": "www.btselem.org"}
        )
        with respx.mock:
            route = respx.post(SERPER_API_URL).mock(
                return_value=httpx.Response(200, json=_SERPER_RESPONSE)
            )
            async with httpx.AsyncClient() as client:
                await search(client, "gaza", settings)

        request = route.calls.last.request
        assert request.headers["X-API-KEY"] == "test-serper-key"
        assert json.loads(request.content)["num"] == 7
        assert json.loads(request.content)["q"] == "gaza site:www.btselem.org"
