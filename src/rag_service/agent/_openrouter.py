"""Low-level OpenRouter HTTP client.

Private to the ``agent`` package.  Provides:

- ``chat_completion()``: POST a system + user message pair to OpenRouter and
  return the raw JSON response dict.
- ``extract_text_content()``: read ``choices[0].message.content``.
- ``require_api_key()``: fetch the configured key or fail fast.

Error handling maps HTTP status codes to typed exceptions:
- HTTP 429 -> :class:`~rag_service.core.exceptions.UpstreamRateLimitError`
- HTTP 401/403 -> :class:`~rag_service.core.exceptions.UpstreamAuthError`
- Other non-2xx -> :class:`~rag_service.core.exceptions.UpstreamServiceError`
- Network errors -> :class:`~rag_service.core.exceptions.UpstreamServiceError`
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from rag_service.agent.config import OPENROUTER_API_URL, SERVICE_NAME
from rag_service.core.exceptions import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamServiceError,
)
from rag_service.core.http import parse_retry_after

if TYPE_CHECKING:
    from rag_service.config.settings import Settings

logger = logging.getLogger(__name__)


def require_api_key(settings: Settings) -> str:
    """Return the OpenRouter API key.

    Raises:
        ConfigurationError: If ``OPENROUTER_API_KEY`` is not configured.
    """
    if not settings.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY not set")
    return settings.openrouter_api_key


async def chat_completion(
    client: httpx.AsyncClient,
    model: str,
    system_prompt: str,
    user_message: str,
    api_key: str,
    *,
    temperature: float = 0,
) -> dict[str, Any]:
    """Call the OpenRouter chat completions endpoint and return the raw response.

    Args:
        client: Shared :class:`httpx.AsyncClient` instance.
        model: OpenRouter model identifier (e.g. ``"openai/gpt-4o-mini"``).
        system_prompt: System message to prepend to the conversation.
        user_message: The user turn.
        api_key: OpenRouter API key (``Bearer`` token).
        temperature: Sampling temperature.

    Returns:
        Parsed JSON response dict from the OpenRouter API.

    Raises:
        UpstreamRateLimitError: On HTTP 429.
        UpstreamAuthError: On HTTP 401 or 403.
        UpstreamServiceError: On other non-2xx responses or network errors.
    """
    payload: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        "temperature": temperature,
    }
    headers: dict[str, str] = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    logger.debug("openrouter: completion model=%s chars=%d", model, len(user_message))
    return await _post_completion(client, payload, headers)


async def _post_completion(
    client: httpx.AsyncClient,
    payload: dict[str, Any],
    headers: dict[str, str],
) -> dict[str, Any]:
    """Execute the OpenRouter POST request and return the parsed response.

    Raises:
        UpstreamRateLimitError: On HTTP 429.
        UpstreamAuthError: On HTTP 401 or 403.
        UpstreamServiceError: On other HTTP errors, network failures or a
            non-JSON body.
    """
    try:
        response = await client.post(OPENROUTER_API_URL, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        code = exc.response.status_code
        if code == 429:
            retry_after = parse_retry_after(exc.response.headers.get("Retry-After"))
            raise UpstreamRateLimitError(
                "openrouter: HTTP 429 — rate limited",
                retry_after=retry_after,
                service=SERVICE_NAME,
            ) from exc
        if code in (401, 403):
            raise UpstreamAuthError(
                f"openrouter: HTTP {code} — invalid API key",
                service=SERVICE_NAME,
            ) from exc
        raise UpstreamServiceError(
            f"openrouter: HTTP {code} — {exc.response.text[:200]}",
            service=SERVICE_NAME,
        ) from exc
    except httpx.RequestError as exc:
        raise UpstreamServiceError(
            f"openrouter: network error — {exc}",
            service=SERVICE_NAME,
        ) from exc

    try:
        return response.json()  # type: ignore[no-any-return]
    except Exception as exc:  # noqa: BLE001
        raise UpstreamServiceError(
            f"openrouter: JSON parse error — {exc}",
            service=SERVICE_NAME,
        ) from exc


def extract_text_content(response: dict[str, Any]) -> str:
    """Extract the assistant's message text from an OpenRouter response.

    Args:
        response: Parsed JSON response dict from OpenRouter.

    Returns:
        The text content string, or empty string if not found.
    """
    try:
        choices = response.get("choices") or []
        if choices:
            return choices[0].get("message", {}).get("content") or ""
    except (AttributeError, IndexError, TypeError):
        pass
    return ""
