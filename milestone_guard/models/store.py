# milestone_guard/models/store.py
"""
Milestone store protocol and in-memory implementation.

Defines the abstract interface that both InMemoryMilestoneStore and
SQLiteMilestoneStore implement. The engine receives a store instance
explicitly; it never reaches for a module-level one.
"""

import logging
from abc import ABC, abstractmethod

from milestone_guard.models.milestone import ACTIVE_STATUSES, Milestone, StreamType
from milestone_guard.models.results import RiskAssessment, ValidationResult

logger = logging.getLogger(__name__)


class MilestoneStore(ABC):
    """
    Abstract base class for milestone storage implementations.

    Stores hand out independent copies, so a caller mutating a loaded
    milestone never affects other readers until it calls save().
    """

    @abstractmethod
    async def get(self, milestone_id: str) -> Milestone | None:
        """
        Get a milestone by ID.

        Args:
            milestone_id: Milestone identifier

        Returns:
            Milestone if found, None otherwise
        """

    @abstractmethod
    async def list_all(self, stream_type: StreamType | None = None) -> list[Milestone]:
        """
        List milestones, optionally restricted to one stream type.

        Returns:
            Milestones ordered by estimated start date (earliest first)
        """

    @abstractmethod
    async def save(self, milestone: Milestone) -> None:
        """Insert or replace a milestone."""

    @abstractmethod
    async def count_active(self) -> int:
        """Count milestones currently in progress or in review."""

    @abstractmethod
    async def save_validation(self, result: ValidationResult) -> None:
        """Append a validation result to the milestone's history."""

    @abstractmethod
    async def save_assessment(self, assessment: RiskAssessment) -> None:
        """Append a risk assessment to the milestone's history."""

    @abstractmethod
    async def latest_validation(self, milestone_id: str) -> ValidationResult | None:
        """Most recent validation result for a milestone, if any."""


class InMemoryMilestoneStore(MilestoneStore):
    """
    Simple in-memory milestone storage.

    Safe for single-process asyncio usage. Used by tests and as the
    default when no database is configured.
    """

    def __init__(self, milestones: list[Milestone] | None = None) -> None:
        self._milestones: dict[str, Milestone] = {}
        self._validations: dict[str, list[ValidationResult]] = {}
        self._assessments: dict[str, list[RiskAssessment]] = {}
        for milestone in milestones or []:
            self._milestones[milestone.id] = milestone.model_copy(deep=True)
        logger.info(f"Initialized InMemoryMilestoneStore with {len(self._milestones)} milestone(s)")

    async def get(self, milestone_id: str) -> Milestone | None:
        milestone = self._milestones.get(milestone_id)
        return milestone.model_copy(deep=True) if milestone else None

    async def list_all(self, stream_type: StreamType | None = None) -> list[Milestone]:
        milestones = [
            m.model_copy(deep=True)
            for m in self._milestones.values()
            if stream_type is None or m.stream_type == stream_type
        ]
        return sorted(milestones, key=lambda m: m.estimated_start_date)

    async def save(self, milestone: Milestone) -> None:
        self._milestones[milestone.id] = milestone.model_copy(deep=True)
        logger.debug(f"Saved milestone {milestone.id}")

    async def count_active(self) -> int:
        return sum(1 for m in self._milestones.values() if m.status in ACTIVE_STATUSES)

    async def save_validation(self, result: ValidationResult) -> None:
        self._validations.setdefault(result.milestone_id, []).append(result)

    async def save_assessment(self, assessment: RiskAssessment) -> None:
        self._assessments.setdefault(assessment.milestone_id, []).append(assessment)

    async def latest_validation(self, milestone_id: str) -> ValidationResult | None:
        history = self._validations.get(milestone_id)
        return history[-1] if history else None

    async def assessments_for(self, milestone_id: str) -> list[RiskAssessment]:
        """Assessment history for a milestone (inspection helper)."""
        return list(self._assessments.get(milestone_id, []))
