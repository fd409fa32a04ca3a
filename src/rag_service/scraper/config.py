"""Constants and tuning parameters for the browser-backed scraper."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

#: Fixed politeness delay (seconds) applied before every scrape call.
#: Per call, not a global rate limit: concurrent calls still burst.
POLITENESS_DELAY: float = 0.2

#: Navigation timeout for a single ``page.goto`` (seconds).
NAVIGATION_TIMEOUT: float = 30.0

#: Wait for the ``body`` element after navigation (seconds).
BODY_WAIT_TIMEOUT: float = 5.0

#: Sleep after an anti-bot challenge page has been detected (seconds).
CHALLENGE_SETTLE_DELAY: float = 3.0

#: Additional sleep when the challenge resolution marker is still missing.
CHALLENGE_EXTRA_DELAY: float = 2.0

#: Wait for the ``load`` event on pages without a challenge (seconds).
LOAD_STATE_TIMEOUT: float = 2.0

# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

#: Main-content selectors tried in priority order by the extractor.
CONTENT_SELECTORS: tuple[str, ...] = ("main", "article", ".content", "#content", ".main")

#: A content container is used only when its trimmed text is longer than this.
MIN_CONTAINER_TEXT_CHARS: int = 100

#: Lines of this length or shorter are dropped during normalisation.
MAX_DROPPED_LINE_CHARS: int = 2

#: Scraped texts whose trimmed length is at or below this are not substantial.
SUBSTANTIAL_TEXT_MIN_CHARS: int = 100

# ---------------------------------------------------------------------------
# URL classification
# ---------------------------------------------------------------------------

#: URL suffixes of resources that never render as HTML pages.
NON_HTML_EXTENSIONS: tuple[str, ...] = (
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    # archives
    ".zip", ".rar", ".tar", ".gz", ".7z",
    # media
    ".mp3", ".mp4", ".avi", ".mov", ".wav",
    # images
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg",
    # executables / packages
    ".exe", ".dmg", ".app", ".deb", ".rpm",
)

#: Path segment marking download endpoints.
DOWNLOAD_SEGMENT: str = "/download/"

#: Document markers that, together with ``DOWNLOAD_SEGMENT``, reject a URL.
DOWNLOAD_DOCUMENT_MARKERS: tuple[str, ...] = (".doc", ".pdf", ".xls", ".ppt")

# ---------------------------------------------------------------------------
# Browser launch
# ---------------------------------------------------------------------------

#: Static desktop user-agent string presented by every tab.
USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

#: Fixed window size (width, height).
WINDOW_SIZE: tuple[int, int] = (1280, 800)

#: Chromium flags, including automation-detection suppression.
CHROMIUM_ARGS: tuple[str, ...] = (
    "--disable-blink-features=AutomationControlled",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
)
