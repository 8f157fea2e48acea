from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from core.log_setup import LOGGER_NAMESPACES, setup_logging


@pytest.fixture(autouse=True)
def restore_loggers():
    """
    Restore handlers, level and propagation of the configured loggers.

    `setup_logging` disables propagation, which would hide records from
    `caplog` in the rest of the suite.
    """
    names = (*LOGGER_NAMESPACES, "httpx")
    saved = {
        name: (list(logging.getLogger(name).handlers), logging.getLogger(name).level, logging.getLogger(name).propagate)
        for name in names
    }
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate


def test_attaches_single_rich_handler() -> None:
    setup_logging()
    setup_logging()

    for name in LOGGER_NAMESPACES:
        logger = logging.getLogger(name)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False


@pytest.mark.parametrize(
    ("debug", "level", "httpx_level"),
    [(False, logging.WARNING, logging.WARNING), (True, logging.DEBUG, logging.INFO)],
)
def test_debug_switches_levels(debug: bool, level: int, httpx_level: int) -> None:
    setup_logging(debug)

    for name in LOGGER_NAMESPACES:
        assert logging.getLogger(name).level == level
    assert logging.getLogger("httpx").level == httpx_level


def test_writes_to_given_console() -> None:
    buffer = io.StringIO()
    setup_logging(True, console=Console(file=buffer, width=200))

    logging.getLogger("adapters.request_builder").debug("building request")
    setup_logging(False, console=Console(file=buffer, width=200))
    logging.getLogger("adapters.request_builder").debug("not shown")

    output = buffer.getvalue()
    assert "building request" in output
    assert "not shown" not in output
