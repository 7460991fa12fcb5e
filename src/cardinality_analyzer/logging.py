import logging
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from cardinality_analyzer import __version__

SERVICE_NAME = "mimir-cardinality-analyzer"


def service_info(service: str = SERVICE_NAME, version: str = __version__) -> Processor:
    """Processor stamping every event with the service name and version."""

    def add_service_info(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("version", version)
        return event_dict

    return add_service_info


def configure_logging(level: int | str = logging.INFO, service: str = SERVICE_NAME) -> None:
    """
    Route structlog through stdlib logging as one JSON object per line.

    Events carry ``service`` and ``version`` plus any fields bound with
    ``structlog.contextvars``; levels below ``level`` are dropped before
    rendering.
    """
    if isinstance(level, str):
        level = level.upper()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            service_info(service),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s")


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Logger carrying ``kwargs`` on every event, e.g. ``bind_context(tenant=t)``."""
    return structlog.get_logger().bind(**kwargs)
