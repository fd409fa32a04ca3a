"""Structured logging for the RAG service, built on structlog.

``configure_logging()`` is called by the app factory and by the developer
scripts.  Library modules (scraper, search, agent) log through the stdlib
API with %-style messages; the API layer logs structlog events.  Both paths
share one processor chain and end up on stdout, as JSON unless the level is
``DEBUG``.

Two context variables are folded into every record:

``request_id``
    Set by the request-logging middleware in ``api/main.py``.
``scrape_url``
    Set by :meth:`BrowserScraper.scrape_text` for the duration of one
    scrape.  Concurrent scrapes run in separate tasks, so each tab's log
    lines carry their own URL.

Secrets are hidden twice: values under secret-looking keys (``api_key``,
``Authorization``, ``X-API-KEY`` ...) are replaced, and the literal values
of the configured Serper and OpenRouter keys are scrubbed from any string,
which covers keys echoed back inside upstream error messages.
"""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar
from typing import Any, Iterable, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
scrape_url_var: ContextVar[Optional[str]] = ContextVar("scrape_url", default=None)

REDACTED = "[REDACTED]"

_SECRET_KEY_MARKERS: tuple[str, ...] = (
    "api_key",
    "apikey",
    "x-api-key",
    "authorization",
    "bearer",
    "password",
    "secret",
)

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)

# Shorter values would scrub ordinary words.
_MIN_SECRET_LEN = 8

_QUIET_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore", "asyncio")


def _is_secret_key(key: Any) -> bool:
    return isinstance(key, str) and any(marker in key.lower() for marker in _SECRET_KEY_MARKERS)


class SecretScrubber:
    """Processor that hides credentials before rendering.

    Args:
        secret_values: Literal secrets (typically the configured API keys)
            to remove from every string value.  ``None`` and short values
            are ignored.
    """

    def __init__(self, secret_values: Iterable[Optional[str]] = ()) -> None:
        values = {v for v in secret_values if v and len(v) >= _MIN_SECRET_LEN}
        # Longest first so a key containing another is replaced whole.
        self.secret_values = tuple(sorted(values, key=len, reverse=True))

    def scrub(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        for secret in self.secret_values:
            value = value.replace(secret, REDACTED)
        return _BEARER_RE.sub(rf"\g<1>{REDACTED}", value)

    def __call__(
        self,
        logger: WrappedLogger,  # noqa: ARG002
        method_name: str,  # noqa: ARG002
        event_dict: EventDict,
    ) -> EventDict:
        for key, value in list(event_dict.items()):
            if _is_secret_key(key):
                event_dict[key] = REDACTED
            elif isinstance(value, dict):
                event_dict[key] = {
                    k: REDACTED if _is_secret_key(k) else self.scrub(v) for k, v in value.items()
                }
            else:
                event_dict[key] = self.scrub(value)
        return event_dict


def _add_context(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Copy ``request_id`` and ``scrape_url`` from their context variables."""
    for key, var in (("request_id", request_id_var), ("scrape_url", scrape_url_var)):
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)
    return event_dict


def _build_chain(scrubber: SecretScrubber) -> list[Processor]:
    # The scrubber runs last so rendered tracebacks are covered too.
    return [
        structlog.contextvars.merge_contextvars,
        _add_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        scrubber,
    ]


def configure_logging(
    log_level: str = "INFO",
    *,
    secret_values: Iterable[Optional[str]] = (),
) -> None:
    """Route stdlib and structlog records through one JSON (or console) handler.

    Safe to call repeatedly: the root handler is replaced, not added.

    Args:
        log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` or ``CRITICAL``
            (case-insensitive).  ``DEBUG`` switches to the coloured console
            renderer and keeps HTTP client chatter.
        secret_values: Credentials to scrub from log output, usually
            ``settings.serper_api_key`` and ``settings.openrouter_api_key``.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"
    chain = _build_chain(SecretScrubber(secret_values))

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True) if debug else structlog.processors.JSONRenderer()
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
