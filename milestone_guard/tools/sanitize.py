# milestone_guard/tools/sanitize.py
"""
Input validation for tool arguments.

Raises ToolError so callers get a readable message instead of a traceback.
"""

import logging
import re

from fastmcp.exceptions import ToolError

from milestone_guard.models.milestone import StreamType

logger = logging.getLogger(__name__)

_MILESTONE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]{0,127}$")


def sanitize_milestone_id(milestone_id: str) -> str:
    """
    Validate a milestone id.

    Ids are 1-128 characters: letters, digits, and "_ . : -", starting
    with a letter or digit.

    Raises:
        ToolError: If the id format is invalid
    """
    cleaned = milestone_id.strip()
    if not _MILESTONE_ID.match(cleaned):
        raise ToolError(
            f"Invalid milestone ID '{milestone_id}': must be 1-128 letters, digits, "
            f"'_', '.', ':' or '-'"
        )
    return cleaned


def sanitize_stream_type(stream_type: str | None) -> StreamType | None:
    """
    Resolve an optional stream type filter.

    Raises:
        ToolError: If the value is not a known stream type
    """
    if stream_type is None or not stream_type.strip():
        return None
    try:
        return StreamType(stream_type.strip())
    except ValueError:
        valid = ", ".join(s.value for s in StreamType)
        raise ToolError(f"Unknown stream type '{stream_type}'. Must be one of: {valid}")
