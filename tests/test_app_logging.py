"""Tests for logging configuration."""

import logging

from fastapi.testclient import TestClient

from landing_forge.api.app import create_app
from landing_forge.app_logging import LOGGER_NAME, configure_logging
from landing_forge.containers import AppContainer


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging("debug")
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.DEBUG


def test_configure_logging_unknown_level_uses_info() -> None:
    configure_logging("chatty")

    assert logging.getLogger(LOGGER_NAME).level == logging.INFO


def test_create_app_applies_configured_level(container: AppContainer) -> None:
    container.settings.log_level = "WARNING"

    TestClient(create_app(container)).get("/health")

    assert logging.getLogger(LOGGER_NAME).level == logging.WARNING
