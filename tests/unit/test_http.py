"""Unit tests for the shared ``Retry-After`` parser."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import pytest

from rag_service.core.http import DEFAULT_RETRY_AFTER, parse_retry_after


class TestParseRetryAfter:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("30", 30.0), (" 2.5 ", 2.5), ("0", 0.0), ("-5", 0.0)],
    )
    def test_delay_seconds(self, value: str, expected: float) -> None:
        assert parse_retry_after(value) == expected

    def test_future_http_date(self) -> None:
        value = format_datetime(datetime.now(timezone.utc) + timedelta(seconds=45), usegmt=True)
        assert 40.0 < parse_retry_after(value) <= 45.0

    def test_past_http_date_means_no_wait(self) -> None:
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    @pytest.mark.parametrize("value", [None, "", "   ", "later"])
    def test_unusable_values_fall_back(self, value: str | None) -> None:
        assert parse_retry_after(value) == DEFAULT_RETRY_AFTER
        assert parse_retry_after(value, default=5.0) == 5.0
