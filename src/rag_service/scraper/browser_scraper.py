"""Browser-backed page scraper.

One :class:`BrowserScraper` owns a single headless Chromium process and
serves any number of concurrent :meth:`~BrowserScraper.scrape_text` calls,
each in its own tab.  An ``asyncio.Lock`` guards the browser handle and is
held only while a tab is opened (including the one allowed browser
recreation); navigation, challenge waiting and extraction run outside it.

Playwright is imported lazily by the default launcher so the module can be
imported, and tested with a fake launcher, without the browser binaries::

    pip install playwright
    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from rag_service.api.metrics import (
    browser_recreations_total,
    scrape_duration_seconds,
    scrape_requests_total,
)
from rag_service.core.exceptions import (
    BrowserUnavailableError,
    NavigationFailedError,
    PageContentError,
    ScrapeError,
)
from rag_service.core.logging_config import scrape_url_var
from rag_service.scraper.challenge import PageLoader
from rag_service.scraper.config import (
    CHROMIUM_ARGS,
    NAVIGATION_TIMEOUT,
    POLITENESS_DELAY,
    USER_AGENT,
    WINDOW_SIZE,
)
from rag_service.scraper.content_extractor import extract_text

if TYPE_CHECKING:
    from rag_service.config.settings import Settings

logger = logging.getLogger(__name__)

Launcher = Callable[["BrowserLaunchConfig"], Awaitable[Any]]


@dataclass(frozen=True)
class BrowserLaunchConfig:
    """Fixed launch configuration reused for every (re)launch."""

    headless: bool = True
    window_size: tuple[int, int] = WINDOW_SIZE
    user_agent: str = USER_AGENT
    args: tuple[str, ...] = field(default=CHROMIUM_ARGS)

    @property
    def viewport(self) -> dict[str, int]:
        width, height = self.window_size
        return {"width": width, "height": height}

    def chromium_args(self) -> list[str]:
        """Return the full Chromium command-line flag list."""
        width, height = self.window_size
        return [
            *self.args,
            f"--user-agent={self.user_agent}",
            f"--window-size={width},{height}",
        ]


class _PlaywrightLauncher:
    """Default launcher: starts the Playwright driver on first use."""

    def __init__(self) -> None:
        self._playwright: Any = None

    async def __call__(self, config: BrowserLaunchConfig) -> Any:
        if self._playwright is None:
            from playwright.async_api import async_playwright  # noqa: PLC0415

            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(
            headless=config.headless,
            args=config.chromium_args(),
        )

    async def stop(self) -> None:
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()


class BrowserScraper:
    """Scrapes the visible text of pages through a shared headless browser.

    Args:
        launch_config: Launch parameters reused for every (re)launch.
        launcher: Coroutine function producing a browser from a
            :class:`BrowserLaunchConfig`.  Defaults to Playwright Chromium.
        page_loader: Waits for each navigated tab to settle.
        politeness_delay: Seconds slept at the start of every call.
        navigation_timeout: Seconds allowed for ``page.goto``.
        sleep: Coroutine function used for the politeness delay.
    """

    def __init__(
        self,
        launch_config: Optional[BrowserLaunchConfig] = None,
        *,
        launcher: Optional[Launcher] = None,
        page_loader: Optional[PageLoader] = None,
        politeness_delay: float = POLITENESS_DELAY,
        navigation_timeout: float = NAVIGATION_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.launch_config = launch_config or BrowserLaunchConfig()
        self._launcher: Launcher = launcher or _PlaywrightLauncher()
        self.page_loader = page_loader or PageLoader()
        self.politeness_delay = politeness_delay
        self.navigation_timeout = navigation_timeout
        self._sleep = sleep
        self._browser: Any = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> BrowserScraper:
        """Build a scraper whose timings come from application settings."""
        page_loader = PageLoader(
            settle_delay=settings.scraper_challenge_settle_seconds,
            extra_delay=settings.scraper_challenge_extra_wait_seconds,
            load_timeout=settings.scraper_load_timeout_seconds,
        )
        return cls(
            page_loader=page_loader,
            politeness_delay=settings.scraper_politeness_delay_seconds,
            navigation_timeout=settings.scraper_navigation_timeout_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """``True`` when a connected browser is held."""
        if self._browser is None:
            return False
        try:
            return bool(self._browser.is_connected())
        except Exception:  # noqa: BLE001
            return False

    async def start(self) -> None:
        """Launch the browser eagerly.

        Raises:
            BrowserUnavailableError: If the browser cannot be launched.
        """
        async with self._lock:
            if self._browser is None:
                self._browser = await self._launch()

    async def close(self) -> None:
        """Close the browser and stop the driver.  Safe to call twice."""
        async with self._lock:
            browser, self._browser = self._browser, None
            if browser is not None:
                await _close_quietly(browser, "browser")
        stop = getattr(self._launcher, "stop", None)
        if stop is not None:
            await stop()
        logger.info("scraper: browser closed")

    async def __aenter__(self) -> BrowserScraper:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Scraping
    # ------------------------------------------------------------------

    async def scrape_text(self, url: str) -> str:
        """Navigate to ``url`` in a fresh tab and return its main text.

        Args:
            url: Absolute URL of the page to scrape.

        Returns:
            The extracted, line-normalised page text (possibly empty).

        Raises:
            BrowserUnavailableError: No tab could be opened even after one
                browser recreation.
            NavigationFailedError: Navigation failed or timed out, including
                malformed URLs.
            PageContentError: The rendered document could not be read.
        """
        started = time.monotonic()
        outcome = "success"
        url_token = scrape_url_var.set(url)
        try:
            await self._sleep(self.politeness_delay)
            page = await self._open_tab_for_call()
            try:
                return await self._scrape_page(page, url)
            finally:
                await _close_quietly(page, "tab")
        except BrowserUnavailableError:
            outcome = "browser_unavailable"
            raise
        except NavigationFailedError:
            outcome = "navigation_failed"
            raise
        except PageContentError:
            outcome = "content_failed"
            raise
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        except Exception:
            outcome = "error"
            raise
        finally:
            scrape_requests_total.labels(outcome=outcome).inc()
            scrape_duration_seconds.observe(time.monotonic() - started)
            scrape_url_var.reset(url_token)

    async def _scrape_page(self, page: Any, url: str) -> str:
        try:
            await page.goto(
                url,
                timeout=self.navigation_timeout * 1000,
                wait_until="domcontentloaded",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("scraper: navigation failed for %s: %s", url, exc)
            raise NavigationFailedError(url, exc) from exc

        await self.page_loader.await_stable(page)

        try:
            html = await page.content()
        except Exception as exc:  # noqa: BLE001
            logger.warning("scraper: could not read content of %s: %s", url, exc)
            raise PageContentError(url, exc) from exc

        text = extract_text(html)
        logger.debug("scraper: extracted %d chars from %s", len(text), url)
        return text

    async def _open_tab_for_call(self) -> Any:
        """Open a tab, closing it if the calling scrape is cancelled meanwhile.

        The open runs in its own task behind ``asyncio.shield`` so a tab the
        browser hands out after cancellation is still reached and closed.
        """
        opening = asyncio.ensure_future(self._open_tab())
        try:
            return await asyncio.shield(opening)
        except asyncio.CancelledError:
            try:
                page = await opening
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: tab open for a cancelled call failed: %s", exc)
            else:
                await _close_quietly(page, "tab")
            raise

    async def _open_tab(self) -> Any:
        async with self._lock:
            if self._browser is None:
                self._browser = await self._launch()
            try:
                return await self._new_page(self._browser)
            except Exception as exc:  # noqa: BLE001
                logger.warning("scraper: tab open failed (%s); recreating browser", exc)

            browser_recreations_total.inc()
            old, self._browser = self._browser, None
            await _close_quietly(old, "stale browser")
            self._browser = await self._launch()
            try:
                return await self._new_page(self._browser)
            except Exception as exc:  # noqa: BLE001
                logger.error("scraper: tab open failed after browser recreation: %s", exc)
                raise BrowserUnavailableError(
                    f"Failed to open a tab after browser recreation: {exc}"
                ) from exc

    async def _new_page(self, browser: Any) -> Any:
        if not browser.is_connected():
            raise ScrapeError("browser is disconnected")
        return await browser.new_page(
            viewport=self.launch_config.viewport,
            user_agent=self.launch_config.user_agent,
        )

    async def _launch(self) -> Any:
        try:
            browser = await self._launcher(self.launch_config)
        except Exception as exc:  # noqa: BLE001
            logger.error("scraper: browser launch failed: %s", exc)
            raise BrowserUnavailableError(f"Failed to launch browser: {exc}") from exc
        logger.info("scraper: browser launched headless=%s", self.launch_config.headless)
        return browser


async def _close_quietly(target: Any, what: str) -> None:
    try:
        await target.close()
    except Exception as exc:  # noqa: BLE001
        logger.debug("scraper: %s close failed: %s", what, exc)
