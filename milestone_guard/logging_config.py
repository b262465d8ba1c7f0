# milestone_guard/logging_config.py
"""
Stderr-only logging for the MCP server and the CLI.

stdout carries the MCP stdio transport and the CLI's rendered tables, so
every handler installed here writes to stderr. The server emits JSON lines,
the CLI plain text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}

_PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"

# fastmcp installs its own handlers; route it through ours instead
_SHARED_LOGGERS = ("fastmcp",)

# Per-request / per-query chatter
_CAPPED_LOGGERS = {
    "httpx": logging.WARNING,
    "aiosqlite": logging.INFO,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg and exc when set."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def level_for(verbosity: str) -> int:
    """Map OutputConfig.verbosity to a logging level (unknown -> INFO)."""
    return _LEVELS.get(verbosity, logging.INFO)


def configure_logging(verbosity: str = "normal", json_lines: bool = True) -> None:
    """
    Replace all root handlers with a single stderr handler.

    Args:
        verbosity: quiet, normal or verbose
        json_lines: JSON lines (server) or plain text (CLI)
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_lines else logging.Formatter(_PLAIN_FORMAT))
    level = level_for(verbosity)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _SHARED_LOGGERS:
        shared = logging.getLogger(name)
        shared.handlers[:] = [handler]
        shared.setLevel(level)
        shared.propagate = False

    for name, cap in _CAPPED_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, cap))
