# milestone_guard/risk/scorer.py
"""
RiskScorer: aggregates identified risks into probability, impact, a
composite risk score and a discrete level.

    probability = mean(probability scale), impact = mean(impact scale)
    risk_score  = probability * impact
    level       = critical >= 12, high >= 8, medium >= 4, else low

Scale: low=1, medium=2, high=3, critical=4.
"""

from dataclasses import dataclass
from statistics import fmean
from typing import Sequence

from milestone_guard.models.milestone import RiskLevel
from milestone_guard.models.results import IdentifiedRisk

# Lower bound (inclusive) of each level, highest first
LEVEL_THRESHOLDS: tuple[tuple[float, RiskLevel], ...] = (
    (12.0, RiskLevel.CRITICAL),
    (8.0, RiskLevel.HIGH),
    (4.0, RiskLevel.MEDIUM),
)

# Strategy priority by impact (0 = most urgent)
IMPACT_PRIORITY: dict[RiskLevel, int] = {
    RiskLevel.CRITICAL: 0,
    RiskLevel.HIGH: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 3,
}


def level_for_score(risk_score: float) -> RiskLevel:
    """Map a composite risk score to its discrete level."""
    for lower_bound, level in LEVEL_THRESHOLDS:
        if risk_score >= lower_bound:
            return level
    return RiskLevel.LOW


def priority_for(risk: IdentifiedRisk) -> int:
    return IMPACT_PRIORITY[risk.impact]


@dataclass(frozen=True)
class RiskScore:
    probability: float
    impact: float
    risk_score: float
    level: RiskLevel


class RiskScorer:
    """Scores a milestone's identified risks."""

    def rate(self, risk: IdentifiedRisk) -> IdentifiedRisk:
        """Return a copy of ``risk`` with its own level and priority filled in."""
        own_score = risk.probability.scale * risk.impact.scale
        return risk.model_copy(
            update={"level": level_for_score(own_score), "priority": priority_for(risk)}
        )

    def score(self, risks: Sequence[IdentifiedRisk]) -> RiskScore:
        """
        Aggregate risks into one score.

        Args:
            risks: Identified risks for one milestone

        Returns:
            RiskScore; with no risks, probability and impact are 0 and the
            level is low
        """
        if not risks:
            return RiskScore(probability=0.0, impact=0.0, risk_score=0.0, level=RiskLevel.LOW)

        probability = fmean(r.probability.scale for r in risks)
        impact = fmean(r.impact.scale for r in risks)
        risk_score = probability * impact
        return RiskScore(
            probability=probability,
            impact=impact,
            risk_score=risk_score,
            level=level_for_score(risk_score),
        )
