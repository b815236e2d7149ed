"""
Structured logging setup shared by every optimizer component.
"""

import logging
import sys
from typing import Optional

import structlog

from mloptimizer.config.system_configs import LoggingConfig

_configured = False


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structlog on top of the standard logging module"""
    global _configured
    config = config or LoggingConfig()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    if config.enable_console:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            stream=sys.stdout,
        )
    logging.getLogger("mloptimizer").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None):
    """Get a structured logger, configuring defaults on first use"""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name or "mloptimizer")
