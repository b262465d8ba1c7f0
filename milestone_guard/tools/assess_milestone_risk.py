# milestone_guard/tools/assess_milestone_risk.py
"""
assess_milestone_risk tool implementation.

Assesses one milestone's risk and returns the assessment together with
escalations, mitigation plan and recommendations.
"""

import logging

from fastmcp.exceptions import ToolError

from milestone_guard.models.store import MilestoneStore
from milestone_guard.risk.manager import RiskManager
from milestone_guard.tools.sanitize import sanitize_milestone_id

logger = logging.getLogger(__name__)


async def assess_milestone_risk(
    milestone_id: str, store: MilestoneStore, risk_manager: RiskManager
) -> dict:
    """
    Assess risk for a stored milestone.

    Args:
        milestone_id: Milestone identifier
        store: Milestone storage instance
        risk_manager: Configured RiskManager

    Returns:
        MilestoneRiskReport as dict

    Raises:
        ToolError: If the id is invalid or unknown
    """
    sanitized_id = sanitize_milestone_id(milestone_id)

    milestone = await store.get(sanitized_id)
    if milestone is None:
        raise ToolError(
            f"Milestone '{sanitized_id}' not found. Use list_milestones to see available milestones."
        )

    report = await risk_manager.review_milestone(milestone)
    return report.model_dump(mode="json")
