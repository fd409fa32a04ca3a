"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
API keys are accessed exclusively through this module; never call
``os.getenv`` directly elsewhere in the codebase.

Usage::

    from rag_service.config.settings import get_settings

    settings = get_settings()
    model = settings.llm_model
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration backed by environment variables and an optional .env file.

    Every field has a default so the service can boot without any
    environment; the upstream API keys are only required when the agent
    workflow actually calls the search or LLM provider.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    app_name: str = "RAG Service"
    """Human-readable application name shown in the OpenAPI docs."""

    host: str = "0.0.0.0"
    """Interface the HTTP server binds to."""

    port: int = 8080
    """TCP port the HTTP server binds to."""

    debug: bool = False
    """Enable FastAPI debug mode.  Never True in production."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    allowed_origins: list[str] = ["*"]
    """Origins permitted by the CORS middleware."""

    metrics_enabled: bool = True
    """Expose Prometheus metrics at ``GET /metrics``."""

    # ------------------------------------------------------------------
    # Upstream credentials
    # ------------------------------------------------------------------

    serper_api_key: Optional[str] = None
    """Serper.dev API key used by the web search step."""

    openrouter_api_key: Optional[str] = None
    """OpenRouter API key used by query enhancement and answer generation."""

    # ------------------------------------------------------------------
    # Search and LLM
    # ------------------------------------------------------------------

    llm_model: str = "openai/gpt-4o-mini"
    """OpenRouter model identifier for both enhancement and generation."""

    search_num_results: int = 5
    """Number of organic results requested from the search provider."""

    search_time_range: Optional[str] = "qdr:3y"
    """Google ``tbs`` time-range filter (``qdr:3y`` = past three years).
    ``None`` disables the filter."""

    search_site_filter: Optional[str] = None
    """Optional domain appended to every query as ``site:<domain>``."""

    http_timeout_seconds: float = 30.0
    """Timeout for outbound HTTP calls to the search and LLM providers."""

    answer_context_max_chars: int = 4000
    """Total characters of scraped text in the answer prompt, split evenly across sources."""

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------

    scraper_politeness_delay_seconds: float = 0.2
    """Fixed pause applied before every scrape call."""

    scraper_navigation_timeout_seconds: float = 30.0
    """Upper bound for a single tab navigation."""

    scraper_challenge_settle_seconds: float = 3.0
    """Wait after an anti-bot challenge page is detected."""

    scraper_challenge_extra_wait_seconds: float = 2.0
    """Additional wait when the challenge resolution marker is still absent."""

    scraper_load_timeout_seconds: float = 2.0
    """Wait for the ``load`` event on pages without a challenge."""

    scrape_timeout_seconds: float = 60.0
    """Caller-level timeout wrapping one whole scrape in the retrieval step."""

    substantial_text_min_chars: int = 100
    """Scraped texts whose trimmed length is at or below this are dropped."""

    retriever_fail_fast: bool = False
    """When True, any per-URL scrape failure aborts the whole retrieval batch."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Pydantic Settings reads the environment and .env file exactly once per
    process lifetime.  In tests, call ``get_settings.cache_clear()`` after
    patching environment variables.
    """
    return Settings()
