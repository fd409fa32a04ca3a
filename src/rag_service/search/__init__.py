"""Web search via the Serper.dev Google Search API.

Sub-modules:
- ``config``   — endpoint URL and default request parameters
- ``_client``  — low-level POST helper with HTTP error mapping
"""

from __future__ import annotations

from rag_service.search._client import build_search_query, fetch_serper, search

__all__ = ["build_search_query", "fetch_serper", "search"]
