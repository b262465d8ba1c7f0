"""Milestone validation against quality gates, criteria and thresholds."""

from milestone_guard.validation.evaluators import (
    PerformanceThresholdEvaluator,
    QualityGateEvaluator,
    SuccessCriteriaEvaluator,
    meets_threshold,
)
from milestone_guard.validation.scorer import ValidationScorer, pass_rate
from milestone_guard.validation.validator import MilestoneValidator

__all__ = [
    "QualityGateEvaluator",
    "SuccessCriteriaEvaluator",
    "PerformanceThresholdEvaluator",
    "meets_threshold",
    "ValidationScorer",
    "pass_rate",
    "MilestoneValidator",
]
