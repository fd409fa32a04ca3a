"""Prometheus metrics for the RAG service.

All metrics are module-level singletons registered on the default
``REGISTRY``.  They are safe to import from multiple modules because the
module is imported once per process.

Metrics defined here:

  http_requests_total{method, path, status}
      Counter — HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram — HTTP request latency in seconds.

  scrape_requests_total{outcome}
      Counter — scrape calls by outcome (success, navigation_failed,
      content_failed, browser_unavailable, cancelled, error).

  scrape_duration_seconds
      Histogram — wall-clock duration of one ``scrape_text`` call.

  browser_recreations_total
      Counter — browser processes replaced after a failed tab open.

  challenge_pages_total{detector, state}
      Counter — anti-bot challenge pages seen, by detector and by whether the
      resolution marker appeared (resolved / pending).

  retrieval_urls_total{stage}
      Counter — URLs flowing through the retrieval pipeline (candidate,
      skipped, failed, insubstantial, kept).

Usage::

    from rag_service.api.metrics import scrape_requests_total
    scrape_requests_total.labels(outcome="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by middleware in main.py)
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the FastAPI application.",
    labelnames=["method", "path", "status"],
)

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

# ---------------------------------------------------------------------------
# Scraper metrics (populated in scraper/)
# ---------------------------------------------------------------------------

scrape_requests_total: Counter = Counter(
    "scrape_requests_total",
    "Scrape calls by outcome.",
    labelnames=["outcome"],
)
"""Counter incremented once per ``BrowserScraper.scrape_text`` call.

Labels:
  outcome: success, navigation_failed, content_failed, browser_unavailable,
           cancelled, error (any other exception)
"""

scrape_duration_seconds: Histogram = Histogram(
    "scrape_duration_seconds",
    "Wall-clock duration of a single scrape call in seconds.",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

browser_recreations_total: Counter = Counter(
    "browser_recreations_total",
    "Browser processes replaced after a failed tab open.",
)

challenge_pages_total: Counter = Counter(
    "challenge_pages_total",
    "Anti-bot challenge pages detected, by detector and resolution state.",
    labelnames=["detector", "state"],
)

# ---------------------------------------------------------------------------
# Retrieval metrics (populated in agent/retriever.py)
# ---------------------------------------------------------------------------

retrieval_urls_total: Counter = Counter(
    "retrieval_urls_total",
    "URLs flowing through the retrieval pipeline, by stage.",
    labelnames=["stage"],
)
"""Labels:
  stage: candidate, skipped, failed, insubstantial, kept
"""


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
