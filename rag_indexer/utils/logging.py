"""Structured logging setup using structlog.

One processor chain, two renderers: coloured console output for
interactive runs, JSON lines for scheduled builds (``APP_ENV=production``
or ``json_output=True``).

Standard-library ``logging`` is routed through the same chain so httpx,
openai and aiosqlite records look like the indexer's own events.  While a
collection is indexed, its name is bound into the structlog context and
appears on every event.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

# Libraries that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "openai")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderer(use_json: bool) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _route_stdlib(level: str, processors: list[structlog.types.Processor]) -> None:
    """Send stdlib log records through *processors* on stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *processors],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog (and stdlib logging) for an indexing process.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON output regardless of ``APP_ENV``.

    Returns:
        A configured structlog BoundLogger.
    """
    level = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    processors = [*_shared_processors(), _renderer(use_json)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _route_stdlib(level, processors)

    return structlog.get_logger()


def bind_log_context(**values: Any) -> None:
    """Bind *values* into every subsequent log event of this context."""
    structlog.contextvars.bind_contextvars(**values)


def unbind_log_context(*keys: str) -> None:
    """Remove *keys* previously bound with :func:`bind_log_context`."""
    structlog.contextvars.unbind_contextvars(*keys)
