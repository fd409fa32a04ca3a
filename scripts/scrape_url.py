#!/usr/bin/env python
"""Scrape one or more URLs through the shared headless browser.

Run from the project root after ``pip install -e .`` and
``playwright install chromium``::

    python scripts/scrape_url.py https://www.btselem.org/gaza_strip

Each URL is checked by the URL classifier first; non-scrapeable URLs are
reported and skipped.  The remaining URLs are scraped concurrently on one
browser, exactly as the retrieval pipeline does.

Usage::

    python scripts/scrape_url.py URL [URL ...] [--full] [--timeout SECONDS]

Options:
    --full     Print the whole extracted text instead of a 500-char preview.
    --timeout  Per-URL deadline in seconds (default: SCRAPE_TIMEOUT_SECONDS).

Exit codes:
    0 — Every scrapeable URL produced text.
    1 — At least one scrape failed, or the browser could not be launched.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

_PREVIEW_CHARS = 500


async def _run(urls: list[str], full: bool, timeout: float | None) -> int:
    """Scrape ``urls`` and print a report.

    Args:
        urls: URLs given on the command line.
        full: Print full texts rather than previews.
        timeout: Per-URL deadline, or ``None`` for the configured default.

    Returns:
        The process exit code.
    """
    from rag_service.agent.retriever import scrape_all  # noqa: PLC0415
    from rag_service.config.settings import get_settings  # noqa: PLC0415
    from rag_service.core.exceptions import BrowserUnavailableError  # noqa: PLC0415
    from rag_service.scraper.browser_scraper import BrowserScraper  # noqa: PLC0415
    from rag_service.scraper.url_classifier import filter_scrapeable  # noqa: PLC0415

    settings = get_settings()
    kept, skipped = filter_scrapeable(urls)
    for target in skipped:
        print(f"[scrape_url] SKIP {target.url} (non-HTML resource)")
    if not kept:
        print("[scrape_url] Nothing to scrape.")
        return 0

    try:
        async with BrowserScraper.from_settings(settings) as scraper:
            outcomes = await scrape_all(
                scraper,
                [target.url for target in kept],
                timeout=timeout or settings.scrape_timeout_seconds,
            )
    except BrowserUnavailableError as exc:
        print(f"[scrape_url] ERROR: browser unavailable: {exc}", file=sys.stderr)
        return 1

    exit_code = 0
    for outcome in outcomes:
        if not outcome.ok:
            exit_code = 1
            print(f"[scrape_url] FAIL {outcome.url}: {outcome.error}", file=sys.stderr)
            continue
        marker = "" if outcome.is_substantial(settings.substantial_text_min_chars) else " (too short)"
        print(f"[scrape_url] OK   {outcome.url}: {len(outcome.text)} chars{marker}")
        body = outcome.text if full else outcome.text[:_PREVIEW_CHARS]
        print(f"\n{body}\n")
    return exit_code


def main() -> None:
    """Parse command-line arguments and run the scrape."""
    parser = argparse.ArgumentParser(
        description="Scrape page text through the shared headless browser.",
    )
    parser.add_argument("urls", nargs="+", metavar="URL", help="URL(s) to scrape.")
    parser.add_argument("--full", action="store_true", help="Print the full extracted text.")
    parser.add_argument("--timeout", type=float, default=None, help="Per-URL deadline in seconds.")
    args = parser.parse_args()

    from rag_service.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging("INFO")
    sys.exit(asyncio.run(_run(args.urls, args.full, args.timeout)))


if __name__ == "__main__":
    main()
