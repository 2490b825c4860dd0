"""Log output for hosts and the ``hostconf`` CLI.

Library modules log through ``logging.getLogger(__name__)``; this module only
decides how those records are rendered. The extraction engine never logs.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

LOGGER_NAME = "hostconf"


def _pre_chain() -> list[structlog.types.Processor]:
    # Applied to both structlog and plain stdlib records.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def build_formatter(*, log_json: bool, colors: bool = False) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering JSON lines or human-readable console output."""
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route all logging to *stream* (stderr by default).

    ``hostconf`` loggers emit DEBUG when *verbose*, WARNING otherwise; every
    other logger stays at WARNING.
    """
    stream = stream or sys.stderr
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_formatter(log_json=log_json, colors=stream.isatty()))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)
