"""
Data models for milestone-guard.

Provides the milestone snapshot, result models and storage implementations.
"""

from milestone_guard.models.milestone import (
    Milestone,
    MilestoneStatus,
    RiskCategory,
    RiskFactor,
    RiskFactorStatus,
    RiskLevel,
    StreamType,
)
from milestone_guard.models.results import (
    BatchItemError,
    BatchValidationReport,
    Blocker,
    CriterionResult,
    EscalationEvent,
    EscalationTier,
    GateResult,
    IdentifiedRisk,
    MetricDirection,
    MitigationPlan,
    MilestoneRiskReport,
    MitigationStrategy,
    PortfolioAssessment,
    Recommendation,
    RiskAssessment,
    RuleStatus,
    ThresholdResult,
    ValidationResult,
)
from milestone_guard.models.store import InMemoryMilestoneStore, MilestoneStore

__all__ = [
    # Milestone snapshot
    "Milestone",
    "MilestoneStatus",
    "StreamType",
    "RiskCategory",
    "RiskFactor",
    "RiskFactorStatus",
    "RiskLevel",
    # Results
    "RuleStatus",
    "MetricDirection",
    "GateResult",
    "CriterionResult",
    "ThresholdResult",
    "Blocker",
    "Recommendation",
    "ValidationResult",
    "IdentifiedRisk",
    "RiskAssessment",
    "MitigationStrategy",
    "MitigationPlan",
    "EscalationTier",
    "EscalationEvent",
    "MilestoneRiskReport",
    "PortfolioAssessment",
    "BatchItemError",
    "BatchValidationReport",
    # Storage
    "MilestoneStore",
    "InMemoryMilestoneStore",
]
