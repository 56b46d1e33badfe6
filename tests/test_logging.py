import logging
from collections.abc import Iterator

import pytest
import structlog

from entity_crud.logging import LoggingSettings, _renderer, configure_logging


@pytest.fixture
def restore_logging() -> Iterator[None]:
    yield
    configure_logging(LoggingSettings())


def test_sql_logger_level_is_configurable(restore_logging: None) -> None:
    configure_logging(LoggingSettings(LOG_SQL_LEVEL="INFO"))
    assert logging.getLogger("sqlalchemy.engine").level == logging.INFO


def test_sql_statements_are_quiet_by_default(restore_logging: None) -> None:
    configure_logging(LoggingSettings())
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_log_format_selects_renderer() -> None:
    assert isinstance(_renderer("console"), structlog.dev.ConsoleRenderer)
    assert isinstance(_renderer("json"), structlog.processors.JSONRenderer)
