from __future__ import annotations

import logging
import os
import sys

import structlog

from nodepulse_core.config import load_env_file

LOG_LEVEL_ENV = "NODEPULSE_LOG_LEVEL"
LOG_FORMAT_ENV = "NODEPULSE_LOG_FORMAT"

_CONFIGURED = False


def _resolve_level() -> int:
    name = os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"invalid {LOG_LEVEL_ENV} value: {name}")
    return level


def _renderer() -> structlog.types.Processor:
    if os.getenv(LOG_FORMAT_ENV, "json").strip().lower() == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    # First get_logger runs at import, before any entry point loads .env.
    load_env_file()
    logging.basicConfig(
        level=_resolve_level(),
        format="%(message)s",
        stream=sys.stdout,
    )
    # One line per dashboard poll is enough; urllib3 would add its own.
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str = "nodepulse.api"):
    configure_logging()
    return structlog.get_logger(name)
