"""Send depcycle's diagnostics to stderr through structlog.

stdout carries command results only. Log lines go to stderr, rendered for
a terminal by default or as JSON lines with ``--log-json``. Records from
plain ``logging.getLogger`` calls and from structlog loggers share one
handler and one processor chain.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

PACKAGE_LOGGER = "depcycle"

# Libraries that are chatty at DEBUG even when depcycle is verbose.
QUIET_LOGGERS = ("networkx",)


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _stderr_handler(pre_chain: list[Processor], renderer: Processor) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set logger levels.

    Safe to call more than once; the root logger always ends up with a
    single handler.

    Args:
        verbose: DEBUG for the ``depcycle`` logger; WARNING otherwise.
        log_json: JSON renderer instead of the console renderer.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers[:] = [_stderr_handler(pre_chain, _renderer(log_json))]
    root.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
