"""Structured logging configuration.

Emits one JSON object per line on stdout, suitable for App Service log
streaming or any JSON log aggregator. All logs include:
- ISO8601 timestamp
- Log level
- Logger name
- Service metadata
- Event type (for filtering)

Viewer tokens travel in query strings, so a redaction filter is installed
alongside the formatter (see ``viewer_bridge.core.middleware``).
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

from viewer_bridge.core.config import Settings, get_settings
from viewer_bridge.core.middleware import TokenRedactionFilter


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service metadata and an event type."""

    def __init__(self, *args, service: dict[str, str] | None = None, **kwargs):
        super().__init__(
            *args,
            fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={
                'asctime': '@timestamp',
                'levelname': 'level',
                'name': 'logger',
            },
            **kwargs
        )
        self._service = service or {}

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['@timestamp'] = datetime.now(timezone.utc).isoformat()

        if self._service:
            log_record['service'] = self._service

        if 'level' in log_record:
            log_record['level'] = log_record['level'].upper()

        if 'event_type' not in log_record:
            log_record['event_type'] = f"log.{record.name}"


def build_formatter(settings: Settings) -> ServiceJsonFormatter:
    return ServiceJsonFormatter(
        service={
            'name': settings.APP_NAME,
            'version': settings.APP_VERSION,
            'environment': settings.ENVIRONMENT,
        }
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Configure JSON logging with token redaction.

    Call this at application startup.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = build_formatter(settings)
    redaction_filter = TokenRedactionFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redaction_filter)
    root_logger.addHandler(console_handler)

    _configure_uvicorn_loggers(formatter, redaction_filter)

    # Expiry jobs fire every few seconds under load
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logging.info(
        "Logging configured",
        extra={
            "event_type": "system.startup.logging_configured",
            "log_level": settings.LOG_LEVEL.upper(),
        }
    )


def _configure_uvicorn_loggers(
    formatter: logging.Formatter, redaction_filter: logging.Filter
) -> None:
    """Route uvicorn loggers through the JSON formatter.

    The access logger records full request lines including ``?token=``.
    """
    for logger_name in ['uvicorn', 'uvicorn.error', 'uvicorn.access']:
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handler.addFilter(redaction_filter)
        logger.addHandler(handler)
        logger.propagate = False
