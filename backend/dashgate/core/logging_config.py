"""Structured logging for dashgate.

Every authorization decision and tenant lookup is logged as a structlog event.
Request-scoped fields (request_id, username, dashboard_id, widget_name) come
from structlog.contextvars, bound by ObservabilityMiddleware and the authorize
route. The DAO keeps stdlib ``logging.getLogger``; its records go through the
same ProcessorFormatter, so they render like the structlog events.
"""

import logging
import sys

import structlog

from dashgate.core.config import Settings, settings


def _renderer(app_settings: Settings) -> structlog.types.Processor:
    if app_settings.app_env == "development":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(app_settings: Settings | None = None) -> None:
    """Route structlog and stdlib logging through one handler. Call once at app startup."""
    app_settings = app_settings or settings

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(app_settings),
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(app_settings.log_level.upper())

    for name in app_settings.log_quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
