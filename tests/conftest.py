"""Shared pytest fixtures for RAG service tests.

Fixture summary
---------------
settings        — Settings with test API keys, isolated from any local .env.
sleep_recorder  — Drop-in for ``asyncio.sleep`` that records requested delays.

All tests run without a browser, network access or API keys: Playwright
objects are replaced by the fakes in ``tests/scraper/conftest.py`` and
upstream HTTP APIs are mocked with respx.
"""

from __future__ import annotations

import asyncio
import os

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set env vars before any application modules are imported so the
# module-level app in api/main.py is built with predictable settings.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "LOG_LEVEL": "INFO",
    "METRICS_ENABLED": "true",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from rag_service.config.settings import Settings, get_settings  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


class SleepRecorder:
    """Async callable recording every requested delay without waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        # Still yield to the loop so concurrent tasks interleave.
        await asyncio.sleep(0)


@pytest.fixture
def settings() -> Settings:
    """Settings with fake API keys and fast scraper timings."""
    return Settings(
        _env_file=None,
        serper_api_key="test-serper-key",
        openrouter_api_key="test-openrouter-key",
        scraper_politeness_delay_seconds=0,
        scraper_challenge_settle_seconds=0,
        scraper_challenge_extra_wait_seconds=0,
        scrape_timeout_seconds=5.0,
    )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
