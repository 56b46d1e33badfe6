"""Structured logging for the CRUD service.

Events go to stdout as JSON lines by default, or as colored key/value lines
with ``LOG_FORMAT=console`` for local work. The middleware binds request_id,
method and path into structlog.contextvars, so every controller event
(``entity_created``, ``persistence_error``, ...) carries them.

SQL statement logging is controlled separately through ``LOG_SQL_LEVEL``
(``INFO`` prints every statement the repositories issue).
"""

import logging
import logging.config
import sys
from datetime import UTC, datetime
from typing import Any, Literal

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog.stdlib import BoundLogger


def _add_timestamp(
    _logger: object,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO 8601 UTC timestamp with timezone offset."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class LoggingSettings(BaseSettings):
    """Logging settings from environment variables."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")
    log_sql_level: str = Field(default="WARNING", alias="LOG_SQL_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def _renderer(log_format: str) -> Any:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(settings: LoggingSettings) -> None:
    """Configure structlog and the root stdlib logger.

    Called once at import; calling it again replaces the configuration.
    Records from SQLAlchemy and uvicorn go through the same formatter via
    ``foreign_pre_chain``.
    """
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": _renderer(settings.log_format),
                    "foreign_pre_chain": shared,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": sys.stdout,
                },
            },
            "loggers": {
                "": {
                    "handlers": ["default"],
                    "level": settings.log_level,
                    "propagate": True,
                },
                "sqlalchemy.engine": {"level": settings.log_sql_level},
            },
        }
    )


configure_logging(LoggingSettings())


def get_logger(name: str) -> BoundLogger:
    """Get a structured logger, typically ``get_logger(__name__)``.

    Example:
        logger.info("entity_created", entity="Deal", id=12)
        # {"event": "entity_created", "entity": "Deal", "id": 12, "level": "info", ...}
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]
