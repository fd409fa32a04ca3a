"""Unit tests for the low-level OpenRouter chat-completions client."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest
import respx

from rag_service.agent import _openrouter
from rag_service.agent.config import OPENROUTER_API_URL
from rag_service.core.exceptions import (
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamServiceError,
)

_TEST_MODEL = "openai/gpt-4o-mini"


def _completion(content: str | None) -> dict:
    return {
        "id": "gen-1",
        "model": _TEST_MODEL,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


# ---------------------------------------------------------------------------
# chat_completion
# ---------------------------------------------------------------------------


class TestChatCompletion:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        with respx.mock:
            route = respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(200, json=_completion("hello"))
            )
            async with httpx.AsyncClient() as client:
                result = await _openrouter.chat_completion(
                    client=client,
                    model=_TEST_MODEL,
                    system_prompt="Be brief.",
                    user_message="Hi",
                    api_key="test-key",
                )

        assert _openrouter.extract_text_content(result) == "hello"
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == _TEST_MODEL
        assert body["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]
        assert body["temperature"] == 0

    @pytest.mark.asyncio
    async def test_rate_limit(self) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(
                    429, headers={"Retry-After": "30"}, json={"error": "rate limited"}
                )
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await _openrouter.chat_completion(
                        client, _TEST_MODEL, "s", "u", "test-key"
                    )

        assert exc_info.value.retry_after == 30.0
        assert exc_info.value.service == "openrouter"

    @pytest.mark.asyncio
    async def test_rate_limit_with_http_date(self) -> None:
        retry_at = format_datetime(
            datetime.now(timezone.utc) + timedelta(seconds=90), usegmt=True
        )
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(429, headers={"Retry-After": retry_at})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await _openrouter.chat_completion(
                        client, _TEST_MODEL, "s", "u", "test-key"
                    )

        assert 60.0 < exc_info.value.retry_after <= 90.0

    @pytest.mark.asyncio
    async def test_rate_limit_with_past_http_date(self) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(
                    429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}
                )
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await _openrouter.chat_completion(
                        client, _TEST_MODEL, "s", "u", "test-key"
                    )

        assert exc_info.value.retry_after == 0.0

    @pytest.mark.asyncio
    async def test_rate_limit_with_unparseable_header(self) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(429, headers={"Retry-After": "not-a-date"})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamRateLimitError) as exc_info:
                    await _openrouter.chat_completion(
                        client, _TEST_MODEL, "s", "u", "test-key"
                    )

        assert exc_info.value.retry_after == 60.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_errors(self, status_code: int) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(status_code, json={"error": "Unauthorized"})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamAuthError):
                    await _openrouter.chat_completion(client, _TEST_MODEL, "s", "u", "bad-key")

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(502, text="Bad Gateway")
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamServiceError, match="HTTP 502"):
                    await _openrouter.chat_completion(client, _TEST_MODEL, "s", "u", "test-key")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        with respx.mock:
            respx.post(OPENROUTER_API_URL).mock(
                return_value=httpx.Response(200, text="<html>not json</html>")
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(UpstreamServiceError, match="JSON parse error"):
                    await _openrouter.chat_completion(client, _TEST_MODEL, "s", "u", "test-key")


class TestExtractTextContent:
    def test_missing_choices(self) -> None:
        assert _openrouter.extract_text_content({}) == ""
        assert _openrouter.extract_text_content({"choices": []}) == ""

    def test_null_content(self) -> None:
        assert _openrouter.extract_text_content(_completion(None)) == ""

    def test_malformed_choice(self) -> None:
        assert _openrouter.extract_text_content({"choices": ["oops"]}) == ""
