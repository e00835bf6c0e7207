"""Logging setup: stdlib loggers rendered by structlog on stderr.

Modules log through ``logging.getLogger(__name__)``; task execution logs
through ``structlog.get_logger`` with bound ``task_id`` / ``task_key``.
Both paths end in one :class:`structlog.stdlib.ProcessorFormatter`, so
``--log-json`` switches every line to JSON at once.
"""

from __future__ import annotations

import logging
import sys

import structlog

_PACKAGE_LOGGER = "cfman"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(log_json: bool, pre_chain: list[structlog.types.Processor]) -> logging.Handler:
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to stderr through structlog.

    Args:
        verbose: Log ``cfman.*`` at DEBUG; otherwise WARNING and above only.
        log_json: One JSON object per line instead of the console renderer.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_json, pre_chain))
    root.setLevel(logging.WARNING)

    logging.getLogger(_PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    # Third-party libraries stay at WARNING even when verbose.
    logging.getLogger("pluggy").setLevel(logging.WARNING)
