"""Answer generation over the retrieved page texts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import httpx

from rag_service.agent._openrouter import chat_completion, extract_text_content, require_api_key
from rag_service.agent.config import (
    ANSWER_SYSTEM_PROMPT,
    ANSWER_USER_TEMPLATE,
    NO_SOURCES_ANSWER,
    TRUNCATION_MARKER,
)
from rag_service.core.exceptions import WorkflowError

if TYPE_CHECKING:
    from rag_service.config.settings import Settings

logger = logging.getLogger(__name__)


def build_sources(texts: Sequence[str], max_chars: int) -> str:
    """Number the source texts and fit them into a character budget.

    Sources are split evenly across ``max_chars``; a source longer than its
    share is cut and marked with ``[...]``.

    Args:
        texts: Substantial page texts in rank order.
        max_chars: Total characters allowed across all excerpts.

    Returns:
        Blocks of the form ``[n] excerpt`` separated by blank lines.
    """
    if not texts:
        return ""
    share = max(max_chars // len(texts), 1)
    blocks: list[str] = []
    for index, text in enumerate(texts, start=1):
        excerpt = text.strip()
        if len(excerpt) > share:
            excerpt = excerpt[:share].rstrip() + TRUNCATION_MARKER
        blocks.append(f"[{index}] {excerpt}")
    return "\n\n".join(blocks)


async def generate_answer(
    client: httpx.AsyncClient,
    query: str,
    texts: Sequence[str],
    settings: Settings,
) -> str:
    """Answer ``query`` from ``texts`` with the configured LLM.

    When ``texts`` is empty the model is not called and a fixed
    "nothing found" answer is returned.

    Raises:
        ConfigurationError: If no OpenRouter API key is configured.
        UpstreamServiceError: On OpenRouter failures.
        WorkflowError: If the model returned an empty answer.
    """
    if not texts:
        logger.info("generator: no sources for %r, returning fallback answer", query)
        return NO_SOURCES_ANSWER

    api_key = require_api_key(settings)
    sources = build_sources(texts, settings.answer_context_max_chars)
    response = await chat_completion(
        client,
        settings.llm_model,
        ANSWER_SYSTEM_PROMPT,
        ANSWER_USER_TEMPLATE.format(query=query, sources=sources),
        api_key,
    )
    answer = extract_text_content(response).strip()
    if not answer:
        raise WorkflowError("Answer generator returned an empty response")
    logger.info("generator: answered %r from %d sources", query, len(texts))
    return answer
