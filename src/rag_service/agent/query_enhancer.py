"""Rewrites a user question into a keyword-style search query.

The model is asked for a bare list of words and terms.  Its output is
flattened to one line: numbering prefixes, surrounding quotes and stray
punctuation are removed and whitespace is collapsed.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import httpx

from rag_service.agent._openrouter import chat_completion, extract_text_content, require_api_key
from rag_service.agent.config import ENHANCE_QUERY_SYSTEM_PROMPT, ENHANCE_QUERY_USER_TEMPLATE
from rag_service.core.exceptions import WorkflowError

if TYPE_CHECKING:
    from rag_service.config.settings import Settings

logger = logging.getLogger(__name__)

# Leading list numbering such as "1. ", "2) " or "- ".
_LIST_PREFIX_RE: re.Pattern[str] = re.compile(r"^\s*(?:\d+[\.\)\:]|[-*•])\s*")

# Punctuation the model is told not to emit; hyphens and apostrophes inside
# words are kept.
_PUNCTUATION_RE: re.Pattern[str] = re.compile(r"[,;:!?\"“”`]+")


async def enhance_query(
    client: httpx.AsyncClient,
    query: str,
    settings: Settings,
) -> str:
    """Ask the LLM to rewrite ``query`` as search terms.

    Args:
        client: Shared HTTP client.
        query: The user's original question.
        settings: Application settings (API key and model).

    Returns:
        A single-line, whitespace-normalised search query.

    Raises:
        ConfigurationError: If no OpenRouter API key is configured.
        UpstreamServiceError: On OpenRouter failures.
        WorkflowError: If the model returned no usable text.
    """
    api_key = require_api_key(settings)
    response = await chat_completion(
        client,
        settings.llm_model,
        ENHANCE_QUERY_SYSTEM_PROMPT,
        ENHANCE_QUERY_USER_TEMPLATE.format(query=query),
        api_key,
    )
    enhanced = normalise_terms(extract_text_content(response))
    if not enhanced:
        raise WorkflowError("Query enhancer returned an empty response")
    logger.info("query_enhancer: %r -> %r", query, enhanced)
    return enhanced


def normalise_terms(raw_text: str) -> str:
    """Flatten the model's term list to a single space-separated line."""
    terms: list[str] = []
    for line in raw_text.splitlines():
        cleaned = _LIST_PREFIX_RE.sub("", line)
        cleaned = _PUNCTUATION_RE.sub(" ", cleaned).strip().strip("'")
        if cleaned:
            terms.append(cleaned)
    return " ".join(" ".join(terms).split())
