"""structlog setup for the API process."""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from fleetlearn.config import Settings

SERVICE_NAME = "fleetlearn"


def _service_context(environment: str) -> Processor:
    """Stamp every event with the service name and deployment environment."""

    def processor(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def setup_logging(settings: Settings) -> None:
    """JSON lines in deployed environments, coloured console output with ``log_format=console``."""
    renderer: Processor = (
        structlog.dev.ConsoleRenderer() if settings.log_format == "console" else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _service_context(settings.environment),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.debug else logging.WARNING)
    # request_completed from RequestIdMiddleware replaces uvicorn's access line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
