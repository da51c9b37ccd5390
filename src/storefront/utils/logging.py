"""Logging configuration for the storefront ledger.

Standard library handlers do the I/O; structlog does the formatting and the
keyword context that every service attaches to its log lines. Level, format
and the log directory come from ``storefront.config``.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from storefront import config

SERVICE_NAME = "storefront"

# Libraries that log at INFO on every request or event
_QUIET_LOGGERS = ("protean", "asyncio", "httpx", "uvicorn.access")


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("env", config.environment())
    return event_dict


def _handlers(level: str) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    directory = config.log_dir()
    if directory:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            filename=path / f"{SERVICE_NAME}.log",
            maxBytes=config.log_file_max_bytes(),
            backupCount=5,
            encoding="utf-8",
        )
        rotating.setLevel(level)
        handlers.append(rotating)
    return handlers


def setup_stdlib_logging() -> None:
    level = config.log_level()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = _handlers(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def renderer():
    """The final processor: JSON lines for deployed environments, console otherwise."""
    if config.log_format() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_service,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging() -> None:
    """Configure all logging for the application."""
    setup_stdlib_logging()
    setup_structlog()


def add_context(**kwargs: Any) -> None:
    """Bind keyword context onto every log line emitted by this thread until cleared."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context(*keys: str) -> None:
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
