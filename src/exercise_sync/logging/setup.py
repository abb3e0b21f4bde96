"""
Structured logging configuration
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from exercise_sync.config import Settings
from exercise_sync.exceptions import ConfigurationError

# httpx logs every request at INFO, which would echo backend URLs per upload
NOISY_LOGGERS = ("httpx", "httpcore")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {name!r}")
    return level


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "text":
        return structlog.dev.ConsoleRenderer()
    raise ConfigurationError(f"Unknown log format: {log_format!r}")


def _client_context(service_name: str, environment: str) -> Processor:
    def add_client_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_client_context


def setup_logging(
    service_name: str,
    settings: Optional[Settings] = None,
) -> structlog.BoundLogger:
    """
    Route structlog through stdlib logging on stdout

    Every event carries the service name and environment. Unknown levels
    or formats in ``settings`` raise ConfigurationError before anything
    is configured.
    """
    settings = settings or Settings(service_name=service_name)
    level = _resolve_level(settings.log_level)
    renderer = _renderer(settings.log_format)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _client_context(service_name, settings.environment),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(service_name)


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Module logger for exercise_sync; pass ``__name__``"""
    return structlog.get_logger(name)
