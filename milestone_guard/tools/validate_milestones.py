# milestone_guard/tools/validate_milestones.py
"""
validate_milestones tool implementation.

Batch validation: per-milestone failures are reported, never raised.
"""

import logging

from fastmcp.exceptions import ToolError

from milestone_guard.tools.sanitize import sanitize_milestone_id
from milestone_guard.validation.validator import MilestoneValidator

logger = logging.getLogger(__name__)

MAX_BATCH = 500


async def validate_milestones(
    milestone_ids: list[str],
    concurrency: int | None,
    validator: MilestoneValidator,
) -> dict:
    """
    Validate several milestones concurrently.

    Args:
        milestone_ids: Milestone identifiers
        concurrency: Optional worker count override (1-64)
        validator: Configured MilestoneValidator

    Returns:
        BatchValidationReport as dict

    Raises:
        ToolError: If the request itself is malformed
    """
    if not milestone_ids:
        raise ToolError("milestone_ids cannot be empty")
    if len(milestone_ids) > MAX_BATCH:
        raise ToolError(f"Too many milestones ({len(milestone_ids)}); at most {MAX_BATCH} per batch")
    if concurrency is not None and not 1 <= concurrency <= 64:
        raise ToolError(f"Invalid concurrency {concurrency}: must be between 1 and 64")

    ids = [sanitize_milestone_id(mid) for mid in milestone_ids]
    report = await validator.validate_multiple_milestones(ids, concurrency=concurrency)
    return report.model_dump(mode="json")
