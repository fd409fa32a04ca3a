"""URL-shape filter deciding whether a search result is worth scraping.

Decisions are made from the URL string alone (no network access): binary
documents, archives, media and executables are rejected before a browser
tab is ever opened for them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from rag_service.scraper.config import (
    DOWNLOAD_DOCUMENT_MARKERS,
    DOWNLOAD_SEGMENT,
    NON_HTML_EXTENSIONS,
)

logger = logging.getLogger(__name__)


def is_scrapeable(url: str) -> bool:
    """Return ``True`` if the URL is likely to be an HTML page.

    Rules (case-insensitive):

    1. Reject when the URL ends with a known non-HTML extension.
    2. Reject when the URL contains ``/download/`` and any of ``.doc``,
       ``.pdf``, ``.xls`` or ``.ppt`` anywhere.
    3. Accept otherwise.

    The extension rule is a plain suffix check, so ``/file.pdf?x=1`` is
    accepted unless it also matches the download rule.

    Args:
        url: Absolute URL taken from a search result.

    Returns:
        ``True`` if the URL should be scraped.
    """
    url_lower = url.lower()

    if url_lower.endswith(NON_HTML_EXTENSIONS):
        return False

    if DOWNLOAD_SEGMENT in url_lower and any(
        marker in url_lower for marker in DOWNLOAD_DOCUMENT_MARKERS
    ):
        return False

    return True


@dataclass(frozen=True)
class ScrapeTarget:
    """A candidate URL together with its classification."""

    url: str
    scrapeable: bool

    @classmethod
    def classify(cls, url: str) -> ScrapeTarget:
        return cls(url=url, scrapeable=is_scrapeable(url))


def filter_scrapeable(urls: Iterable[str]) -> tuple[list[ScrapeTarget], list[ScrapeTarget]]:
    """Partition URLs into scrapeable and skipped targets.

    Skipped URLs are logged at warning level; skipping is never an error.

    Args:
        urls: Candidate URLs in search-result order.

    Returns:
        ``(kept, skipped)`` lists of :class:`ScrapeTarget`, each preserving
        input order.
    """
    kept: list[ScrapeTarget] = []
    skipped: list[ScrapeTarget] = []
    for url in urls:
        target = ScrapeTarget.classify(url)
        if target.scrapeable:
            kept.append(target)
        else:
            logger.warning("scraper: skipping non-scrapeable URL %s", url)
            skipped.append(target)
    return kept, skipped
