#!/usr/bin/env python
"""Run a Serper.dev search the way the retrieval pipeline does.

Run from the project root after ``pip install -e .``, with
``SERPER_API_KEY`` (and ``OPENROUTER_API_KEY`` for ``--enhance``) set in the
environment or ``.env``::

    python scripts/search_query.py "house demolitions east jerusalem"

Usage::

    python scripts/search_query.py QUERY [--enhance] [--site HOST]

Options:
    --enhance  Rewrite the query with the LLM query enhancer first.
    --site     Restrict results to this host (default: SEARCH_SITE_FILTER).

Exit codes:
    0 — Search succeeded (possibly with no results).
    1 — Missing API key or upstream API error.
"""

from __future__ import annotations

import argparse
import asyncio
import sys


async def _run(query: str, enhance: bool, site: str | None) -> int:
    """Execute the search and print the organic results.

    Args:
        query: The search query.
        enhance: Run the query enhancer before searching.
        site: Optional ``site:`` host override.

    Returns:
        The process exit code.
    """
    import httpx  # noqa: PLC0415

    from rag_service.agent.query_enhancer import enhance_query  # noqa: PLC0415
    from rag_service.config.settings import get_settings  # noqa: PLC0415
    from rag_service.core.exceptions import RagServiceError  # noqa: PLC0415
    from rag_service.scraper.url_classifier import is_scrapeable  # noqa: PLC0415
    from rag_service.search import search  # noqa: PLC0415

    settings = get_settings()
    if site is not None:
        settings = settings.model_copy(update={"search_site_filter": site})

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        try:
            if enhance:
                query = await enhance_query(client, query, settings)
                print(f"[search_query] Enhanced query: {query}")
            response = await search(client, query, settings)
        except RagServiceError as exc:
            print(f"[search_query] ERROR: {exc}", file=sys.stderr)
            return 1

    print(f"[search_query] Executed: {response.search_parameters.q}")
    print(f"[search_query] {len(response.organic)} organic results\n")
    for result in response.organic:
        flag = "" if is_scrapeable(result.link) else "  [skipped: non-HTML]"
        print(f"{result.position:>2}. {result.title}{flag}")
        print(f"    {result.link}")
        if result.date:
            print(f"    {result.date}")
        if result.snippet:
            print(f"    {result.snippet}")
    return 0


def main() -> None:
    """Parse command-line arguments and run the search."""
    parser = argparse.ArgumentParser(description="Run a Serper.dev web search.")
    parser.add_argument("query", help="Search query.")
    parser.add_argument("--enhance", action="store_true", help="Enhance the query with the LLM first.")
    parser.add_argument("--site", default=None, help="Restrict results to this host.")
    args = parser.parse_args()

    from rag_service.config.settings import get_settings  # noqa: PLC0415
    from rag_service.core.logging_config import configure_logging  # noqa: PLC0415

    settings = get_settings()
    configure_logging(
        "INFO", secret_values=(settings.serper_api_key, settings.openrouter_api_key)
    )
    sys.exit(asyncio.run(_run(args.query, args.enhance, args.site)))


if __name__ == "__main__":
    main()
