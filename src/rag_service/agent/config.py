"""OpenRouter endpoint, model defaults and prompt templates."""

from __future__ import annotations

#: OpenRouter chat completions endpoint.
OPENROUTER_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"

#: Default model for both query enhancement and answer generation.
DEFAULT_MODEL: str = "openai/gpt-4o-mini"

#: Service label attached to upstream exceptions.
SERVICE_NAME: str = "openrouter"

# ---------------------------------------------------------------------------
# Query enhancement
# ---------------------------------------------------------------------------

ENHANCE_QUERY_SYSTEM_PROMPT: str = (
    "You are a search assistant, helping users refine their web site search queries.\n"
    "You are given a user query and you need to rewrite it in a way that will "
    "maximize the number of relevant documents found in a google search.\n"
    "Output only the list of words and terms, no other text, no commas or other "
    "punctuation."
)

#: User message wrapping the raw query; ``{query}`` is substituted.
ENHANCE_QUERY_USER_TEMPLATE: str = "\nUser query:\n{query}"

# ---------------------------------------------------------------------------
# Answer generation
# ---------------------------------------------------------------------------

ANSWER_SYSTEM_PROMPT: str = (
    "You are a research assistant. Answer the user's question using only the "
    "numbered source excerpts provided. Cite sources inline as [1], [2], etc. "
    "If the sources do not contain the answer, say so plainly instead of guessing."
)

#: User message for answer generation; ``{query}`` and ``{sources}`` are substituted.
ANSWER_USER_TEMPLATE: str = "Question:\n{query}\n\nSources:\n{sources}"

#: Answer returned without calling the model when retrieval found nothing usable.
NO_SOURCES_ANSWER: str = (
    "I could not find any relevant web pages to answer this question."
)

#: Marker appended to a source excerpt cut to fit the context budget.
TRUNCATION_MARKER: str = " [...]"
