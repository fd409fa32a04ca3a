"""Fake Playwright objects for scraper tests.

The fakes implement only the slice of the Playwright async API the scraper
uses: ``Browser.new_page/is_connected/close`` and ``Page.goto``,
``wait_for_selector``, ``wait_for_load_state``, ``evaluate``, ``content``
and ``close``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Optional

import pytest


def _default_html(url: str) -> str:
    return f"<html><head><title>{url}</title></head><body><main>{url}</main></body></html>"


class FakePage:
    """Playwright ``Page`` stand-in.

    Args:
        html_for: Maps the navigated URL to the HTML returned by ``content()``.
        challenge: Result of the challenge-marker probe.
        resolved: Result of the resolution-marker probe.
        goto_error: Raised by ``goto`` when set.
        content_error: Raised by ``content`` when set.
        close_error: Raised by ``close`` when set.
        goto_delay: Seconds ``goto`` suspends, to interleave concurrent tabs.
    """

    def __init__(
        self,
        html_for: Callable[[str], str] = _default_html,
        *,
        challenge: bool = False,
        resolved: bool = False,
        goto_error: Optional[BaseException] = None,
        content_error: Optional[BaseException] = None,
        close_error: Optional[BaseException] = None,
        body_error: Optional[BaseException] = None,
        load_error: Optional[BaseException] = None,
        goto_delay: float = 0,
    ) -> None:
        self.url = "about:blank"
        self._html_for = html_for
        self.challenge = challenge
        self.resolved = resolved
        self.goto_error = goto_error
        self.content_error = content_error
        self.close_error = close_error
        self.body_error = body_error
        self.load_error = load_error
        self.goto_delay = goto_delay
        self.goto_calls: list[dict[str, Any]] = []
        self.evaluate_calls: list[str] = []
        self.load_state_calls: list[dict[str, Any]] = []
        self.close_count = 0

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.goto_calls.append({"url": url, **kwargs})
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        if self.body_error is not None:
            raise self.body_error

    async def wait_for_load_state(self, state: str, **kwargs: Any) -> None:
        self.load_state_calls.append({"state": state, **kwargs})
        if self.load_error is not None:
            raise self.load_error

    async def evaluate(self, script: str) -> bool:
        self.evaluate_calls.append(script)
        if "document.cookie" in script:
            return self.resolved
        return self.challenge

    async def content(self) -> str:
        if self.content_error is not None:
            raise self.content_error
        return self._html_for(self.url)

    async def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    """Playwright ``Browser`` stand-in handing out :class:`FakePage` tabs.

    ``new_page_delay`` suspends ``new_page`` after the tab has been created.
    """

    def __init__(
        self,
        page_factory: Callable[[], FakePage] = FakePage,
        *,
        fail_new_page: bool = False,
        connected: bool = True,
        new_page_delay: float = 0,
    ) -> None:
        self.page_factory = page_factory
        self.fail_new_page = fail_new_page
        self.new_page_delay = new_page_delay
        self.connected = connected
        self.pages: list[FakePage] = []
        self.new_page_kwargs: list[dict[str, Any]] = []
        self.close_count = 0

    def is_connected(self) -> bool:
        return self.connected and self.close_count == 0

    async def new_page(self, **kwargs: Any) -> FakePage:
        self.new_page_kwargs.append(kwargs)
        if self.fail_new_page:
            raise RuntimeError("Target page, context or browser has been closed")
        page = self.page_factory()
        self.pages.append(page)
        # The tab exists before the call returns, as with a real browser.
        if self.new_page_delay:
            await asyncio.sleep(self.new_page_delay)
        return page

    async def close(self) -> None:
        self.close_count += 1


class FakeLauncher:
    """Launcher returning the given browsers in order, then failing."""

    def __init__(self, browsers: Iterable[FakeBrowser]) -> None:
        self._pending = list(browsers)
        self.configs: list[Any] = []
        self.launched: list[FakeBrowser] = []

    async def __call__(self, config: Any) -> FakeBrowser:
        self.configs.append(config)
        if not self._pending:
            raise RuntimeError("Executable doesn't exist")
        browser = self._pending.pop(0)
        self.launched.append(browser)
        return browser


@pytest.fixture
def make_page() -> Callable[..., FakePage]:
    return FakePage


@pytest.fixture
def make_browser() -> Callable[..., FakeBrowser]:
    return FakeBrowser


@pytest.fixture
def make_launcher() -> Callable[..., FakeLauncher]:
    return FakeLauncher
