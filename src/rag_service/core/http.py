"""Helpers shared by the outbound HTTP clients (Serper, OpenRouter)."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

DEFAULT_RETRY_AFTER: float = 60.0
"""Seconds assumed when a 429 response carries no usable ``Retry-After``."""


def parse_retry_after(value: Optional[str], default: float = DEFAULT_RETRY_AFTER) -> float:
    """Convert a ``Retry-After`` header value into seconds to wait.

    Both forms allowed by RFC 9110 are accepted: delay-seconds (``"30"``)
    and an HTTP-date (``"Wed, 21 Oct 2026 07:28:00 GMT"``).  A date in the
    past yields ``0.0``.  Missing or unparseable values yield ``default``.

    Args:
        value: Raw header value, or ``None`` when the header is absent.
        default: Fallback delay in seconds.

    Returns:
        A non-negative number of seconds.
    """
    if value is None or not value.strip():
        return default
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())
