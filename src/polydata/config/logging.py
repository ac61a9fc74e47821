"""structlog configuration for polydata's own loggers.

polydata is a library: it never touches the root logger. The handler lives
on the ``polydata`` logger, which stops propagation while configured so a
host application's handlers do not print polydata events twice.

Library modules log through stdlib ``logging.getLogger(__name__)``; the
ProcessorFormatter installed here renders those records like native
structlog events (console lines, or JSON lines with ``log_json``).
"""

from __future__ import annotations

import logging
import sys

import structlog

from polydata.config.settings import PolydataSettings, get_settings

PACKAGE_LOGGER = "polydata"

_HANDLER_NAME = "polydata-structlog"


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(settings: PolydataSettings | None = None) -> logging.Logger:
    """Route ``polydata.*`` logs through structlog to stderr.

    Args:
        settings: Source of ``verbose`` (DEBUG instead of WARNING) and
            ``log_json``. Defaults to the process-wide settings.

    Returns:
        The configured ``polydata`` logger. Calling again replaces its
        handler rather than stacking a second one.
    """
    settings = settings or get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_json),
            ],
        )
    )

    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in logger.handlers if h.get_name() == _HANDLER_NAME]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if settings.verbose else logging.WARNING)
    logger.propagate = False
    return logger
