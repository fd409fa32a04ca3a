"""Visible-text extraction from rendered HTML.

Uses BeautifulSoup (stdlib ``html.parser`` backend).  Extraction is a pure,
total function: malformed or empty input yields an empty string rather than
an exception.

Algorithm:

1. Remove the literal markup of every ``<script>`` and ``<style>`` element.
2. Re-parse and try the main-content selectors in priority order, taking
   the first container whose text is long enough.  Containers are never
   merged.
3. Fall back to the text of the whole document.
4. Normalise lines (trim, drop empty and very short lines).
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from rag_service.scraper.config import (
    CONTENT_SELECTORS,
    MAX_DROPPED_LINE_CHARS,
    MIN_CONTAINER_TEXT_CHARS,
    SUBSTANTIAL_TEXT_MIN_CHARS,
)

logger = logging.getLogger(__name__)

_PARSER = "html.parser"
_STRIPPED_TAGS: tuple[str, ...] = ("script", "style")


def _remove_script_and_style(html: str) -> str:
    """Return ``html`` with the markup of every script/style element removed."""
    document = BeautifulSoup(html, _PARSER)
    cleaned = html
    for element in document.find_all(_STRIPPED_TAGS):
        cleaned = cleaned.replace(str(element), "")
    return cleaned


def clean_text(text: str) -> str:
    """Normalise extracted text.

    Splits into lines, trims each line, drops empty lines and lines of two
    characters or fewer, and rejoins with ``\\n``.
    """
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if len(line) > MAX_DROPPED_LINE_CHARS)


def extract_text(html: str) -> str:
    """Extract clean visible text from raw HTML.

    Args:
        html: Fully rendered page source (may be partial or malformed).

    Returns:
        Normalised visible text, or ``""`` when nothing could be extracted.
    """
    if not html:
        return ""

    try:
        cleaned_html = _remove_script_and_style(html)
        document = BeautifulSoup(cleaned_html, _PARSER)
        # Elements whose serialisation did not match the source text verbatim.
        for leftover in document.find_all(_STRIPPED_TAGS):
            leftover.decompose()

        for selector in CONTENT_SELECTORS:
            for element in document.select(selector):
                text = element.get_text(" ")
                if len(text.strip()) > MIN_CONTAINER_TEXT_CHARS:
                    return clean_text(text)

        return clean_text(document.get_text(" "))
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: text extraction failed: %s", exc)
        return ""


def is_substantial(text: str | None, threshold: int = SUBSTANTIAL_TEXT_MIN_CHARS) -> bool:
    """Return ``True`` if the trimmed text is strictly longer than ``threshold``."""
    return bool(text) and len(text.strip()) > threshold
