# milestone_guard/validation/scorer.py
"""
ValidationScorer: combines gate, criterion and threshold results into one
composite score, a validated flag, blockers and recommendations.

Scoring formula (weights from ValidationConfig):
    overall = 0.4 * gate_pass_rate + 0.4 * criteria_pass_rate
              + 0.2 * threshold_pass_rate
Each pass rate is passed/total * 100, or 100 when the rule list is empty.
"""

import logging
from datetime import datetime
from typing import Sequence

from milestone_guard.config.schema import ValidationConfig
from milestone_guard.models.milestone import Milestone, RiskLevel
from milestone_guard.models.results import (
    Blocker,
    CriterionResult,
    GateResult,
    Recommendation,
    RuleStatus,
    ThresholdResult,
    ValidationResult,
)

logger = logging.getLogger(__name__)

_HIGH_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


def pass_rate(results: Sequence[GateResult | CriterionResult | ThresholdResult]) -> float:
    """Percentage of results that passed (100 for an empty rule list)."""
    if not results:
        return 100.0
    passed = sum(1 for r in results if r.status == RuleStatus.PASSED)
    return passed / len(results) * 100


def _not_passed(results: Sequence[GateResult | CriterionResult | ThresholdResult]) -> list:
    return [r for r in results if r.status != RuleStatus.PASSED]


class ValidationScorer:
    """Derives the composite score and verdict for a milestone validation."""

    def __init__(self, config: ValidationConfig | None = None):
        self.config = config or ValidationConfig()

    def overall_score(
        self,
        gate_results: Sequence[GateResult],
        criteria_results: Sequence[CriterionResult],
        threshold_results: Sequence[ThresholdResult],
    ) -> float:
        """Weighted composite score, rounded to one decimal, within [0, 100]."""
        score = (
            self.config.gate_weight * pass_rate(gate_results)
            + self.config.criteria_weight * pass_rate(criteria_results)
            + self.config.threshold_weight * pass_rate(threshold_results)
        )
        return round(min(100.0, max(0.0, score)), 1)

    def is_milestone_validated(
        self,
        gate_results: Sequence[GateResult],
        criteria_results: Sequence[CriterionResult],
        overall_score: float,
        milestone: Milestone,
    ) -> bool:
        """
        A milestone is validated iff every gate and criterion passed, the
        composite score reaches the pass mark, and it carries no active
        critical risk.
        """
        all_gates_passed = all(g.status == RuleStatus.PASSED for g in gate_results)
        all_criteria_passed = all(c.status == RuleStatus.PASSED for c in criteria_results)
        score_ok = overall_score >= self.config.pass_score
        no_critical_risks = not self._critical_risks(milestone)
        return all_gates_passed and all_criteria_passed and score_ok and no_critical_risks

    def identify_blockers(
        self,
        gate_results: Sequence[GateResult],
        criteria_results: Sequence[CriterionResult],
        milestone: Milestone,
    ) -> list[Blocker]:
        """
        Informational blockers: failed/errored gates (high), failed/errored
        criteria (critical), and active critical risks (critical).
        """
        blockers = []

        for gate in _not_passed(gate_results):
            blockers.append(
                Blocker(
                    type="quality_gate",
                    description=f'Quality gate "{gate.name}" {gate.status.value}',
                    severity=RiskLevel.HIGH,
                    impact="Cannot proceed without passing this gate",
                )
            )

        for criterion in _not_passed(criteria_results):
            blockers.append(
                Blocker(
                    type="success_criteria",
                    description=f'Success criterion "{criterion.name}" not met',
                    severity=RiskLevel.CRITICAL,
                    impact="Milestone cannot be considered complete",
                )
            )

        for risk in self._critical_risks(milestone):
            blockers.append(
                Blocker(
                    type="risk",
                    description=f"Critical risk: {risk.description}",
                    severity=RiskLevel.CRITICAL,
                    impact="Must be resolved before milestone completion",
                )
            )

        return blockers

    def generate_recommendations(
        self,
        gate_results: Sequence[GateResult],
        criteria_results: Sequence[CriterionResult],
        threshold_results: Sequence[ThresholdResult],
        milestone: Milestone,
    ) -> list[Recommendation]:
        """Follow-up actions grouped by what is holding the milestone back."""
        recommendations = []

        failed_gates = _not_passed(gate_results)
        if failed_gates:
            recommendations.append(
                Recommendation(
                    type="quality_gate",
                    priority=RiskLevel.HIGH,
                    title=f"Failed quality gates: {', '.join(g.name for g in failed_gates)}",
                    actions=["Address failed quality gates before proceeding"],
                    milestone_id=milestone.id,
                )
            )

        failed_criteria = _not_passed(criteria_results)
        if failed_criteria:
            recommendations.append(
                Recommendation(
                    type="success_criteria",
                    priority=RiskLevel.CRITICAL,
                    title=f"Failed success criteria: {', '.join(c.name for c in failed_criteria)}",
                    actions=["Complete all success criteria before milestone completion"],
                    milestone_id=milestone.id,
                )
            )

        failed_thresholds = _not_passed(threshold_results)
        if failed_thresholds:
            recommendations.append(
                Recommendation(
                    type="performance",
                    priority=RiskLevel.MEDIUM,
                    title="Performance thresholds not met: "
                    + ", ".join(t.name for t in failed_thresholds),
                    actions=["Optimize performance to meet defined thresholds"],
                    milestone_id=milestone.id,
                )
            )

        high_risks = [f for f in milestone.active_risk_factors if f.level in _HIGH_LEVELS]
        if high_risks:
            recommendations.append(
                Recommendation(
                    type="risk",
                    priority=RiskLevel.CRITICAL,
                    title=f"High risks identified: {len(high_risks)} active risks",
                    actions=["Implement risk mitigation strategies immediately"],
                    milestone_id=milestone.id,
                )
            )

        return recommendations

    def score(
        self,
        milestone: Milestone,
        gate_results: list[GateResult],
        criteria_results: list[CriterionResult],
        threshold_results: list[ThresholdResult],
        timestamp: datetime,
    ) -> ValidationResult:
        """Assemble the full ValidationResult for one milestone."""
        overall = self.overall_score(gate_results, criteria_results, threshold_results)
        validated = self.is_milestone_validated(gate_results, criteria_results, overall, milestone)

        result = ValidationResult(
            milestone_id=milestone.id,
            stream_type=milestone.stream_type,
            status=milestone.status,
            timestamp=timestamp,
            gate_results=gate_results,
            criteria_results=criteria_results,
            threshold_results=threshold_results,
            overall_score=overall,
            is_validated=validated,
            blockers=self.identify_blockers(gate_results, criteria_results, milestone),
            recommendations=self.generate_recommendations(
                gate_results, criteria_results, threshold_results, milestone
            ),
        )
        logger.info(
            f"Milestone {milestone.id} scored {overall} "
            f"(validated={validated}, blockers={len(result.blockers)})"
        )
        return result

    @staticmethod
    def _critical_risks(milestone: Milestone):
        return [f for f in milestone.active_risk_factors if f.level == RiskLevel.CRITICAL]
