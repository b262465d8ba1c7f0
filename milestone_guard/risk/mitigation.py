# milestone_guard/risk/mitigation.py
"""
MitigationPlanner: strategy selection per risk and mitigation plans for
milestones at high or critical risk.

Strategy rule, first match wins:
    technical risk with critical impact  -> avoid
    resource risk with low probability   -> accept
    external risk                        -> transfer
    anything else                        -> mitigate
"""

import logging
from datetime import datetime, timedelta
from typing import Sequence

from milestone_guard.models.milestone import Milestone, RiskCategory, RiskLevel
from milestone_guard.models.results import (
    ActionPlan,
    Contingency,
    IdentifiedRisk,
    MitigationPlan,
    MitigationStrategy,
    MitigationTimeline,
    RiskAssessment,
    StrategyRecommendation,
    TimelinePhase,
)
from milestone_guard.risk.scorer import priority_for
from milestone_guard.rules.policy import RiskPolicy

logger = logging.getLogger(__name__)

PLANNED_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


def select_strategy(risk: IdentifiedRisk) -> MitigationStrategy:
    """Pick the response for one identified risk."""
    if risk.category == RiskCategory.TECHNICAL and risk.impact == RiskLevel.CRITICAL:
        return MitigationStrategy.AVOID
    if risk.category == RiskCategory.RESOURCE and risk.probability == RiskLevel.LOW:
        return MitigationStrategy.ACCEPT
    if risk.category == RiskCategory.EXTERNAL:
        return MitigationStrategy.TRANSFER
    return MitigationStrategy.MITIGATE


class MitigationPlanner:
    """Builds strategy recommendations and mitigation plans from the risk policy."""

    def __init__(self, policy: RiskPolicy):
        self.policy = policy

    def determine_strategies(self, risks: Sequence[IdentifiedRisk]) -> list[StrategyRecommendation]:
        """One strategy recommendation per identified risk, in input order."""
        recommendations = []
        for risk in risks:
            strategy = select_strategy(risk)
            template = self.policy.strategy(strategy)
            recommendations.append(
                StrategyRecommendation(
                    factor=risk.factor,
                    category=risk.category,
                    risk=risk.description,
                    strategy=strategy,
                    strategy_name=template.name,
                    effectiveness=template.effectiveness,
                    priority=priority_for(risk),
                )
            )
        return recommendations

    def requires_plan(self, level: RiskLevel) -> bool:
        return level in PLANNED_LEVELS

    def create_plan(
        self,
        milestone: Milestone,
        assessment: RiskAssessment,
        now: datetime,
    ) -> MitigationPlan | None:
        """
        Build a mitigation plan for a high or critical assessment.

        Args:
            milestone: Assessed milestone
            assessment: Its risk assessment (strategies already determined)
            now: Plan creation time and start of the first phase

        Returns:
            MitigationPlan, or None when the assessed level needs no plan
        """
        if not self.requires_plan(assessment.level):
            return None

        strategies = assessment.strategies or self.determine_strategies(
            assessment.identified_risks
        )
        action_plans = [
            ActionPlan(
                factor=s.factor,
                strategy=s.strategy,
                strategy_name=s.strategy_name,
                priority=s.priority,
                actions=list(self.policy.strategy(s.strategy).actions),
            )
            for s in strategies
        ]

        template = self.policy.mitigation_plan
        target = RiskLevel.MEDIUM if assessment.level == RiskLevel.CRITICAL else RiskLevel.LOW

        plan = MitigationPlan(
            milestone_id=milestone.id,
            risk_level=assessment.level,
            created_at=now,
            action_plans=action_plans,
            timeline=self._timeline(action_plans, now, template.phase_duration_days),
            resources=list(template.resources),
            success_criteria=[f"Risk level reduced to {target.value}"],
            contingencies=[
                Contingency(trigger=c.trigger, action=c.action, timeline=c.timeline)
                for c in template.contingencies
            ],
        )
        logger.info(
            f"Mitigation plan for milestone {milestone.id} ({assessment.level.value}): "
            f"{len(action_plans)} action plans"
        )
        return plan

    @staticmethod
    def _timeline(
        action_plans: Sequence[ActionPlan], start: datetime, phase_days: int
    ) -> MitigationTimeline:
        """Sequential phases, one per action plan."""
        phases = [
            TimelinePhase(
                name=f"Phase {index + 1}",
                start=start + timedelta(days=index * phase_days),
                duration_days=phase_days,
                factor=plan.factor,
                actions=list(plan.actions),
            )
            for index, plan in enumerate(action_plans)
        ]
        return MitigationTimeline(start=start, phases=phases)
