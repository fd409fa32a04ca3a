"""Serper.dev endpoint and request defaults."""

from __future__ import annotations

#: Serper.dev Google Search endpoint (POST, JSON body).
SERPER_API_URL: str = "https://google.serper.dev/search"

#: Results requested per search.
DEFAULT_NUM_RESULTS: int = 5

#: Google ``tbs`` time-range filter: results from the past three years.
DEFAULT_TIME_RANGE: str = "qdr:3y"

#: Service label attached to upstream exceptions.
SERVICE_NAME: str = "serper"
