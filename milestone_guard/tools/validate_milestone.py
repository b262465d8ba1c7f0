# milestone_guard/tools/validate_milestone.py
"""
validate_milestone tool implementation.

Validates one milestone against its stream's quality gates, success
criteria and performance thresholds.
"""

import logging

from fastmcp.exceptions import ToolError

from milestone_guard.errors import ConfigurationError, MilestoneNotFoundError
from milestone_guard.tools.sanitize import sanitize_milestone_id
from milestone_guard.validation.validator import MilestoneValidator

logger = logging.getLogger(__name__)


async def validate_milestone(milestone_id: str, validator: MilestoneValidator) -> dict:
    """
    Validate a stored milestone.

    Args:
        milestone_id: Milestone identifier
        validator: Configured MilestoneValidator

    Returns:
        ValidationResult as dict

    Raises:
        ToolError: If the id is invalid or unknown, or its stream has no rules
    """
    sanitized_id = sanitize_milestone_id(milestone_id)

    try:
        result = await validator.validate_milestone(sanitized_id)
    except MilestoneNotFoundError:
        raise ToolError(
            f"Milestone '{sanitized_id}' not found. Use list_milestones to see available milestones."
        )
    except ConfigurationError as e:
        raise ToolError(str(e))

    logger.info(f"Validated milestone {sanitized_id}: score={result.overall_score}")
    return result.model_dump(mode="json")
