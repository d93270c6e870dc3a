"""
Logging
=======

structlog setup shared by the API server and the command line.

Production writes one JSON object per event. Everywhere else the console
renderer is used, with colours only when stdout is a terminal.
"""

import logging
import sys
from typing import Any

import structlog

from order_entry.config.settings import Settings, get_settings

# Third-party loggers that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "multipart")

_configured = False


def _renderer(settings: Settings) -> Any:
    if settings.is_production:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(settings: Settings | None = None, *, force: bool = False) -> None:
    """
    Configure structlog and the standard library root logger.

    Safe to call more than once: the CLI configures logging before it
    imports the app, and the app module configures it again on import.
    Pass ``force=True`` to apply a different ``Settings`` afterwards.
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.is_production:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(settings))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(environment=settings.environment)
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
