"""Agent workflow: enhance the query, retrieve page texts, generate an answer.

Sub-modules:
- ``config``           — OpenRouter endpoint, model defaults and prompts
- ``_openrouter``      — low-level chat-completions client
- ``query_enhancer``   — rewrites the user query into search terms
- ``retriever``        — search, URL pruning, concurrent scraping, filtering
- ``generator``        — answers the query from the retrieved texts
- ``workflow``         — chains the three steps over a ``WorkflowContext``
"""

from __future__ import annotations
