"""Retrieval pipeline: search -> URL pruning -> concurrent scrape -> filter.

Per-URL scrape failures (navigation, content, timeout) are logged and
skipped so one bad page does not discard the rest of the batch.  A
:class:`~rag_service.core.exceptions.BrowserUnavailableError` aborts the
batch, since every remaining scrape would fail the same way.  With
``fail_fast=True`` any scrape failure aborts the batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

import httpx

from rag_service.api.metrics import retrieval_urls_total
from rag_service.core.exceptions import BrowserUnavailableError, ScrapeError
from rag_service.core.schemas.search import OrganicResult
from rag_service.scraper.config import SUBSTANTIAL_TEXT_MIN_CHARS
from rag_service.scraper.content_extractor import is_substantial
from rag_service.scraper.url_classifier import filter_scrapeable
from rag_service.search import search

if TYPE_CHECKING:
    from rag_service.config.settings import Settings
    from rag_service.scraper.browser_scraper import BrowserScraper

logger = logging.getLogger(__name__)


@dataclass
class ScrapeOutcome:
    """Result of scraping one URL during the fan-out.

    Attributes:
        url: The scraped URL.
        text: Extracted text; empty when the scrape failed.
        error: The scrape failure, or ``None`` on success.
    """

    url: str
    text: str = ""
    error: Optional[ScrapeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def is_substantial(self, threshold: int = SUBSTANTIAL_TEXT_MIN_CHARS) -> bool:
        return self.ok and is_substantial(self.text, threshold)


@dataclass
class RetrievalResult:
    """Everything the retrieval step learned about one query.

    Attributes:
        query: The search query that was executed.
        results: Organic search results in rank order.
        scrapeable: URLs that passed the classifier.
        outcomes: One outcome per scrapeable URL, in the same order.
        texts: Substantial page texts, in search-rank order.
    """

    query: str
    results: List[OrganicResult] = field(default_factory=list)
    scrapeable: List[str] = field(default_factory=list)
    outcomes: List[ScrapeOutcome] = field(default_factory=list)
    texts: List[str] = field(default_factory=list)


async def scrape_all(
    scraper: BrowserScraper,
    urls: Sequence[str],
    *,
    timeout: Optional[float] = None,
    fail_fast: bool = False,
) -> list[ScrapeOutcome]:
    """Scrape ``urls`` concurrently and return one outcome per URL, in order.

    Args:
        scraper: Shared browser scraper.
        urls: URLs to scrape; all calls are started at once.
        timeout: Per-URL deadline in seconds, or ``None`` for no deadline.
        fail_fast: Re-raise the first scrape failure instead of recording it.

    Raises:
        BrowserUnavailableError: Always propagated; the remaining scrapes
            are cancelled.
        ScrapeError: Only when ``fail_fast`` is set.
    """
    tasks = [
        asyncio.ensure_future(_scrape_one(scraper, url, timeout=timeout, fail_fast=fail_fast))
        for url in urls
    ]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _scrape_one(
    scraper: BrowserScraper,
    url: str,
    *,
    timeout: Optional[float],
    fail_fast: bool,
) -> ScrapeOutcome:
    logger.info("retriever: scraping %s", url)
    try:
        if timeout is None:
            text = await scraper.scrape_text(url)
        else:
            text = await asyncio.wait_for(scraper.scrape_text(url), timeout)
    except BrowserUnavailableError:
        raise
    except asyncio.TimeoutError as exc:
        error = ScrapeError(f"Timed out after {timeout}s scraping {url}", url=url)
        if fail_fast:
            raise error from exc
        logger.warning("retriever: %s", error)
        return ScrapeOutcome(url=url, error=error)
    except ScrapeError as exc:
        if fail_fast:
            raise
        logger.warning("retriever: skipping %s: %s", url, exc)
        return ScrapeOutcome(url=url, error=exc)
    return ScrapeOutcome(url=url, text=text)


async def retrieve_from_results(
    scraper: BrowserScraper,
    query: str,
    results: Sequence[OrganicResult],
    *,
    threshold: int = SUBSTANTIAL_TEXT_MIN_CHARS,
    timeout: Optional[float] = None,
    fail_fast: bool = False,
) -> RetrievalResult:
    """Prune, scrape and filter the URLs of already-fetched search results.

    Returns:
        A :class:`RetrievalResult`; ``texts`` is empty, not an error, when
        every URL is pruned or fails.
    """
    links = [result.link for result in results]
    retrieval_urls_total.labels(stage="candidate").inc(len(links))

    kept_targets, skipped = filter_scrapeable(links)
    kept = [target.url for target in kept_targets]
    retrieval_urls_total.labels(stage="skipped").inc(len(skipped))
    logger.info("retriever: %d of %d URLs are scrapeable", len(kept), len(links))

    retrieval = RetrievalResult(query=query, results=list(results), scrapeable=kept)
    if not kept:
        logger.warning("retriever: no scrapeable URLs for query %r", query)
        return retrieval

    retrieval.outcomes = await scrape_all(scraper, kept, timeout=timeout, fail_fast=fail_fast)

    failed = sum(1 for outcome in retrieval.outcomes if not outcome.ok)
    retrieval.texts = [
        outcome.text for outcome in retrieval.outcomes if outcome.is_substantial(threshold)
    ]
    insubstantial = len(retrieval.outcomes) - failed - len(retrieval.texts)

    retrieval_urls_total.labels(stage="failed").inc(failed)
    retrieval_urls_total.labels(stage="insubstantial").inc(insubstantial)
    retrieval_urls_total.labels(stage="kept").inc(len(retrieval.texts))
    logger.info(
        "retriever: %d substantial texts (%d failed, %d too short)",
        len(retrieval.texts),
        failed,
        insubstantial,
    )
    return retrieval


async def retrieve(
    scraper: BrowserScraper,
    client: httpx.AsyncClient,
    query: str,
    settings: Settings,
) -> RetrievalResult:
    """Search for ``query`` and return the substantial texts of the hits.

    Raises:
        ConfigurationError: If the search API key is missing.
        UpstreamServiceError: On search API failures.
        BrowserUnavailableError: If the browser cannot be (re)launched.
        ScrapeError: On any scrape failure when ``retriever_fail_fast`` is set.
    """
    response = await search(client, query, settings)
    return await retrieve_from_results(
        scraper,
        query,
        response.organic,
        threshold=settings.substantial_text_min_chars,
        timeout=settings.scrape_timeout_seconds,
        fail_fast=settings.retriever_fail_fast,
    )
