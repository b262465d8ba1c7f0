# milestone_guard/tools/conduct_risk_assessment.py
"""conduct_risk_assessment tool implementation."""

import logging

from fastmcp.exceptions import ToolError

from milestone_guard.errors import InvalidScopeError
from milestone_guard.risk.manager import RiskManager

logger = logging.getLogger(__name__)


async def conduct_risk_assessment(scope: str, risk_manager: RiskManager) -> dict:
    """
    Assess every milestone in a scope.

    Args:
        scope: "all", a stream type, or "streamType:<stream type>"
        risk_manager: Configured RiskManager

    Returns:
        PortfolioAssessment as dict

    Raises:
        ToolError: If the scope names no known stream type
    """
    try:
        portfolio = await risk_manager.conduct_risk_assessment(scope.strip() or "all")
    except InvalidScopeError as e:
        raise ToolError(f"{e}. Use 'all', a stream type, or 'streamType:<stream type>'.")

    return portfolio.model_dump(mode="json")
