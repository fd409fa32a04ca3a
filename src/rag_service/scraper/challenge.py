"""Challenge-aware page loading for anti-bot protected sites.

Some sites sit behind anti-bot infrastructure that serves an interstitial
"challenge" page running a client-side JavaScript puzzle before the real
content is delivered.  A full browser engine solves these puzzles on its
own; the loader's only job is to avoid reading the page before that happens.

Waits are fixed and bounded (settle delay, extra delay, load timeout) so the
latency of one scrape stays predictable, at the cost of occasionally reading
a page that is still challenged.

Challenge vendors are pluggable via :class:`ChallengeDetector`; the default
set contains a detector for Deflect (eQualit.ie), whose edge nodes set a
``deflect=<token>`` cookie once the puzzle is solved.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence

from rag_service.api.metrics import challenge_pages_total
from rag_service.scraper.config import (
    BODY_WAIT_TIMEOUT,
    CHALLENGE_EXTRA_DELAY,
    CHALLENGE_SETTLE_DELAY,
    LOAD_STATE_TIMEOUT,
)

logger = logging.getLogger(__name__)


class ChallengeState(str, Enum):
    """Classification of a loaded page, recomputed on every load."""

    NO_CHALLENGE = "no_challenge"
    CHALLENGE_PENDING = "challenge_pending"
    CHALLENGE_RESOLVED = "challenge_resolved"


# ---------------------------------------------------------------------------
# Detectors
# ---------------------------------------------------------------------------


class ChallengeDetector(ABC):
    """Recognises the challenge page of one anti-bot vendor."""

    name: str = "unknown"

    @abstractmethod
    async def is_challenge(self, page: Any) -> bool:
        """Return ``True`` if ``page`` currently shows this vendor's challenge."""

    @abstractmethod
    async def is_resolved(self, page: Any) -> bool:
        """Return ``True`` if the vendor's resolution marker is present."""


class ScriptChallengeDetector(ChallengeDetector):
    """Detector driven by two boolean JavaScript snippets evaluated in the tab.

    Evaluation errors (closed tab, navigation in flight, missing ``body``)
    count as ``False``.

    Args:
        name: Vendor label used in logs and metrics.
        challenge_script: Function source returning ``true`` on a challenge page.
        resolved_script: Function source returning ``true`` once resolved.
    """

    def __init__(self, name: str, challenge_script: str, resolved_script: str) -> None:
        self.name = name
        self._challenge_script = challenge_script
        self._resolved_script = resolved_script

    async def is_challenge(self, page: Any) -> bool:
        return await self._evaluate_flag(page, self._challenge_script)

    async def is_resolved(self, page: Any) -> bool:
        return await self._evaluate_flag(page, self._resolved_script)

    async def _evaluate_flag(self, page: Any, script: str) -> bool:
        try:
            return bool(await page.evaluate(script))
        except Exception as exc:  # noqa: BLE001
            logger.debug("scraper: %s probe failed: %s", self.name, exc)
            return False


DEFLECT_DETECTOR = ScriptChallengeDetector(
    name="deflect",
    challenge_script=(
        "() => {"
        " const html = document.body ? document.body.innerHTML : '';"
        " return html.includes('challenge')"
        " || html.includes('deflect')"
        " || document.title.includes('Verifying');"
        " }"
    ),
    resolved_script="() => document.cookie.includes('deflect=')",
)

DEFAULT_DETECTORS: tuple[ChallengeDetector, ...] = (DEFLECT_DETECTOR,)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class PageLoader:
    """Waits for a navigated tab to reach a scrapeable state.

    Protocol:

    1. Wait for a ``body`` element (failure ignored).
    2. Ask each detector, in order, whether the page is a challenge.
    3. On a challenge: sleep ``settle_delay``, probe the resolution marker and,
       if it is missing, sleep ``extra_delay`` more, then proceed regardless.
    4. Otherwise wait up to ``load_timeout`` for the ``load`` event.

    :meth:`await_stable` never raises.

    Args:
        detectors: Challenge detectors tried in order.
        body_timeout: Seconds to wait for the ``body`` element.
        settle_delay: Seconds to sleep once a challenge is detected.
        extra_delay: Extra seconds when the challenge is not yet resolved.
        load_timeout: Seconds to wait for ``load`` on regular pages.
        sleep: Coroutine function used for the fixed waits.
    """

    def __init__(
        self,
        detectors: Optional[Sequence[ChallengeDetector]] = None,
        *,
        body_timeout: float = BODY_WAIT_TIMEOUT,
        settle_delay: float = CHALLENGE_SETTLE_DELAY,
        extra_delay: float = CHALLENGE_EXTRA_DELAY,
        load_timeout: float = LOAD_STATE_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.detectors: tuple[ChallengeDetector, ...] = tuple(
            DEFAULT_DETECTORS if detectors is None else detectors
        )
        self.body_timeout = body_timeout
        self.settle_delay = settle_delay
        self.extra_delay = extra_delay
        self.load_timeout = load_timeout
        self._sleep = sleep

    async def await_stable(self, page: Any) -> ChallengeState:
        """Wait for ``page`` to settle and report what was found."""
        await self._wait_for_body(page)

        detector = await self._detect(page)
        if detector is None:
            await self._wait_for_load(page)
            return ChallengeState.NO_CHALLENGE

        logger.info("scraper: %s challenge detected on %s", detector.name, _page_url(page))
        await self._sleep(self.settle_delay)

        if await self._resolved(detector, page):
            state = ChallengeState.CHALLENGE_RESOLVED
        else:
            await self._sleep(self.extra_delay)
            state = ChallengeState.CHALLENGE_PENDING

        challenge_pages_total.labels(detector=detector.name, state=state.value).inc()
        logger.debug("scraper: challenge wait finished state=%s", state.value)
        return state

    async def _wait_for_body(self, page: Any) -> None:
        try:
            await page.wait_for_selector(
                "body", state="attached", timeout=self.body_timeout * 1000
            )
        except Exception as exc:  # noqa: BLE001
            logger.debug("scraper: body wait failed on %s: %s", _page_url(page), exc)

    async def _detect(self, page: Any) -> Optional[ChallengeDetector]:
        for detector in self.detectors:
            try:
                if await detector.is_challenge(page):
                    return detector
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: detector %s raised: %s", detector.name, exc)
        return None

    async def _resolved(self, detector: ChallengeDetector, page: Any) -> bool:
        try:
            return await detector.is_resolved(page)
        except Exception as exc:  # noqa: BLE001
            logger.debug("scraper: detector %s raised: %s", detector.name, exc)
            return False

    async def _wait_for_load(self, page: Any) -> None:
        try:
            await page.wait_for_load_state("load", timeout=self.load_timeout * 1000)
        except Exception as exc:  # noqa: BLE001
            logger.debug("scraper: load wait ended early on %s: %s", _page_url(page), exc)


def _page_url(page: Any) -> str:
    return str(getattr(page, "url", "<unknown>"))
