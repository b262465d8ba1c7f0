# milestone_guard/models/responses.py
"""
Pydantic response models for tool outputs that are not engine results.

Engine results (ValidationResult, RiskAssessment, ...) are returned as-is.
"""

from pydantic import BaseModel, Field


class MilestoneSummary(BaseModel):
    """Summary information for a single milestone (used in list_milestones)."""

    id: str = Field(description="Milestone identifier")
    title: str = Field(description="Milestone title (truncated to 80 chars)")
    stream_type: str = Field(description="Stream type selecting the milestone's rule set")
    status: str = Field(description="Current milestone status")
    progress_percentage: float = Field(ge=0.0, le=100.0, description="Completion percentage")
    risk_level: str = Field(description="Risk level from the latest assessment")
    active_risk_factors: int = Field(default=0, description="Number of unmitigated risk factors")
    estimated_end_date: str = Field(description="Planned end date (ISO format)")


class ListMilestonesResponse(BaseModel):
    """Response from list_milestones tool."""

    milestones: list[MilestoneSummary] = Field(
        default_factory=list, description="Milestones, earliest start first"
    )
    total: int = Field(description="Number of milestones returned")
