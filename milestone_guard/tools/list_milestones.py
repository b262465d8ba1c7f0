# milestone_guard/tools/list_milestones.py
"""
list_milestones tool implementation.

Lists stored milestones with status and current risk level.
"""

import logging

from milestone_guard.models.responses import ListMilestonesResponse, MilestoneSummary
from milestone_guard.models.store import MilestoneStore
from milestone_guard.tools.sanitize import sanitize_stream_type

logger = logging.getLogger(__name__)


async def list_milestones(stream_type: str | None, store: MilestoneStore) -> dict:
    """
    List stored milestones.

    Args:
        stream_type: Optional stream type filter
        store: Milestone storage instance

    Returns:
        ListMilestonesResponse as dict

    Raises:
        ToolError: If the stream type filter is unknown
    """
    milestones = await store.list_all(sanitize_stream_type(stream_type))

    summaries = []
    for milestone in milestones:
        # Truncate title to 80 chars
        title = milestone.title
        if len(title) > 80:
            title = title[:77] + "..."

        summaries.append(
            MilestoneSummary(
                id=milestone.id,
                title=title,
                stream_type=milestone.stream_type.value,
                status=milestone.status.value,
                progress_percentage=milestone.progress_percentage,
                risk_level=milestone.risk_level.value,
                active_risk_factors=len(milestone.active_risk_factors),
                estimated_end_date=milestone.estimated_end_date.isoformat(),
            )
        )

    response = ListMilestonesResponse(milestones=summaries, total=len(summaries))

    logger.info(f"Listed {len(summaries)} milestones")
    return response.model_dump()
