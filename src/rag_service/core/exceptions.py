"""Application-wide exception hierarchy for the RAG service.

All custom exceptions subclass ``RagServiceError``, enabling consistent error
handling and structured logging across the application.

Hierarchy::

    RagServiceError
    ├── ConfigurationError
    ├── WorkflowError
    ├── ScrapeError              (url)
    │   ├── BrowserUnavailableError
    │   ├── NavigationFailedError (url, cause)
    │   └── PageContentError      (url, cause)
    └── UpstreamServiceError     (service)
        ├── UpstreamRateLimitError (retry_after: float)
        └── UpstreamAuthError
"""

from __future__ import annotations


class RagServiceError(Exception):
    """Base class for all RAG service exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


class ConfigurationError(RagServiceError):
    """Raised when a required setting (typically an API key) is missing."""


class WorkflowError(RagServiceError):
    """Raised when the agent workflow cannot continue.

    Typical causes are a missing intermediate value (e.g. the enhanced query
    was never produced) or an empty model response.
    """


# ---------------------------------------------------------------------------
# Scraper exceptions
# ---------------------------------------------------------------------------


class ScrapeError(RagServiceError):
    """Raised when a single scrape call cannot produce page text.

    Args:
        message: Human-readable description of the failure.
        url: The URL that was being scraped, when known.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class BrowserUnavailableError(ScrapeError):
    """Raised when neither the current nor a freshly launched browser can
    open a tab.

    Fatal for the call.  The scraper does not retry beyond the single
    recreation attempt; the caller decides what to do with the batch.
    """


class NavigationFailedError(ScrapeError):
    """Raised when a tab cannot navigate to the requested URL.

    A per-URL failure: callers are expected to skip the URL rather than
    abort the whole batch.

    Args:
        url: The URL that failed to load.
        cause: The underlying browser exception.
    """

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to navigate to {url}{detail}", url=url)
        self.cause = cause


class PageContentError(ScrapeError):
    """Raised when the rendered page content cannot be read from the tab.

    Args:
        url: The URL whose content could not be read.
        cause: The underlying browser exception.
    """

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to get page content for {url}{detail}", url=url)
        self.cause = cause


# ---------------------------------------------------------------------------
# Upstream API exceptions (search provider, LLM provider)
# ---------------------------------------------------------------------------


class UpstreamServiceError(RagServiceError):
    """Raised when an upstream HTTP API call fails.

    Args:
        message: Human-readable description of the failure.
        service: Name of the upstream service (e.g. ``"serper"``).
    """

    def __init__(self, message: str, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class UpstreamRateLimitError(UpstreamServiceError):
    """Raised when an upstream API responds with HTTP 429.

    Args:
        message: Human-readable description of the rate limit.
        retry_after: Seconds to wait before retrying. Defaults to 60.
        service: Name of the upstream service.
    """

    def __init__(
        self,
        message: str,
        retry_after: float = 60.0,
        service: str | None = None,
    ) -> None:
        super().__init__(message, service=service)
        self.retry_after = retry_after


class UpstreamAuthError(UpstreamServiceError):
    """Raised when an upstream API rejects the configured credential.

    This typically indicates an invalid or expired API key (HTTP 401/403).
    """
