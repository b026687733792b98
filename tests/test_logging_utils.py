"""
Tests for logging setup: library imports stay silent, entry points install output.
"""

import logging

import pytest

from aisubs import logging_utils


@pytest.fixture
def package_logger():
    logger = logging.getLogger(logging_utils.PACKAGE_LOGGER)
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


def console_handlers(logger):
    return [h for h in logger.handlers if h.get_name() == "aisubs-console"]


def test_get_logger_does_not_configure_output(package_logger):
    root_handlers = list(logging.getLogger().handlers)
    logger = logging_utils.get_logger("aisubs.somewhere")

    assert logger.name == "aisubs.somewhere"
    assert console_handlers(package_logger) == []
    assert logging.getLogger().handlers == root_handlers


def test_setup_logging_installs_one_handler(package_logger, monkeypatch):
    monkeypatch.delenv("AISUBS_LOG_LEVEL", raising=False)
    logging_utils.setup_logging()
    logging_utils.setup_logging()

    assert len(console_handlers(package_logger)) == 1
    assert package_logger.level == logging.INFO


def test_force_replaces_level(package_logger):
    logging_utils.setup_logging("warning")
    logging_utils.setup_logging("debug", force=True)

    assert len(console_handlers(package_logger)) == 1
    assert package_logger.level == logging.DEBUG


@pytest.mark.parametrize(
    "level, env, expected",
    [
        ("debug", None, logging.DEBUG),
        (None, "ERROR", logging.ERROR),
        (None, None, logging.INFO),
        ("verbose", None, logging.INFO),
    ],
)
def test_resolve_level(monkeypatch, level, env, expected):
    if env is None:
        monkeypatch.delenv("AISUBS_LOG_LEVEL", raising=False)
    else:
        monkeypatch.setenv("AISUBS_LOG_LEVEL", env)
    assert logging_utils.resolve_level(level) == expected
