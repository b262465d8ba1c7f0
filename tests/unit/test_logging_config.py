# tests/unit/test_logging_config.py
"""
Unit tests for stderr-only logging configuration.
"""

import json
import logging
import sys

import pytest

from milestone_guard.logging_config import JsonFormatter, configure_logging, level_for


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved = (list(root.handlers), root.level)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    fastmcp_logger = logging.getLogger("fastmcp")
    fastmcp_logger.handlers.clear()
    fastmcp_logger.propagate = True
    for name in ("httpx", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.mark.parametrize(
    "verbosity,level",
    [("quiet", logging.WARNING), ("normal", logging.INFO), ("verbose", logging.DEBUG), ("??", logging.INFO)],
)
def test_level_for(verbosity, level):
    assert level_for(verbosity) == level


def test_json_formatter_includes_exception():
    try:
        raise ValueError("bad metric")
    except ValueError:
        record = logging.getLogger("x").makeRecord(
            "milestone_guard.test", logging.ERROR, __file__, 1, "failed %s", ("ms-1",), sys.exc_info()
        )

    data = json.loads(JsonFormatter().format(record))

    assert data["level"] == "ERROR"
    assert data["logger"] == "milestone_guard.test"
    assert data["msg"] == "failed ms-1"
    assert "ValueError: bad metric" in data["exc"]


def test_configure_logging_uses_single_stderr_handler(restore_logging):
    configure_logging("verbose")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].stream is sys.stderr
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG

    fastmcp_logger = logging.getLogger("fastmcp")
    assert fastmcp_logger.handlers == root.handlers
    assert fastmcp_logger.propagate is False
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.INFO


def test_configure_logging_plain_text(restore_logging):
    configure_logging("quiet", json_lines=False)

    root = logging.getLogger()
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING
