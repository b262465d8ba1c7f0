# milestone_guard/risk/manager.py
"""
RiskManager: single-milestone and portfolio risk assessment.

Pipeline per milestone:
    analyze -> score -> select strategies -> record risk factors
    -> apply time rules -> persist -> escalations / plan / recommendations

At most one assessment per milestone id runs at a time (MilestoneLeases),
since an assessment appends to the RiskFactor log and overwrites
risk_level.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from milestone_guard.config.schema import MilestoneGuardConfig
from milestone_guard.errors import InvalidScopeError
from milestone_guard.leases import MilestoneLeases
from milestone_guard.models.milestone import Milestone, StreamType
from milestone_guard.models.results import (
    CategoryBreakdown,
    MilestoneRiskReport,
    PortfolioAssessment,
    RiskAssessment,
)
from milestone_guard.models.store import MilestoneStore
from milestone_guard.risk.analyzer import AnalysisContext, RiskAnalyzer
from milestone_guard.risk.escalation import EscalationEngine
from milestone_guard.risk.lifecycle import apply_time_rules, record_risk_factors
from milestone_guard.risk.mitigation import MitigationPlanner
from milestone_guard.risk.recommendations import (
    milestone_recommendations,
    portfolio_recommendations,
)
from milestone_guard.risk.scorer import RiskScorer
from milestone_guard.rules.policy import RiskPolicy

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"
_SCOPE_PREFIX = "streamType:"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_scope(scope: str | None) -> StreamType | None:
    """
    Resolve a portfolio scope to a stream type filter.

    Accepts "all" (or empty), a stream type value, or "streamType:<value>".

    Raises:
        InvalidScopeError: If the scope names no known stream type
    """
    if not scope or scope == SCOPE_ALL:
        return None
    value = scope[len(_SCOPE_PREFIX):] if scope.startswith(_SCOPE_PREFIX) else scope
    try:
        return StreamType(value)
    except ValueError:
        raise InvalidScopeError(scope)


def _unique(items):
    return list(dict.fromkeys(items))


class RiskManager:
    """
    Assesses milestone risk and derives escalations and mitigation plans.

    Collaborators are injected; the store is the record of the RiskFactor
    log and of past assessments.
    """

    def __init__(
        self,
        store: MilestoneStore,
        policy: RiskPolicy,
        config: MilestoneGuardConfig | None = None,
        analyzer: RiskAnalyzer | None = None,
        leases: MilestoneLeases | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._policy = policy
        self._config = config or MilestoneGuardConfig()
        self._analyzer = analyzer or RiskAnalyzer()
        self._scorer = RiskScorer()
        self._planner = MitigationPlanner(policy)
        self._escalation = EscalationEngine(policy)
        self._leases = leases or MilestoneLeases()
        self._clock = clock

    @property
    def planner(self) -> MitigationPlanner:
        return self._planner

    @property
    def escalation(self) -> EscalationEngine:
        return self._escalation

    async def assess_milestone_risk(self, milestone: Milestone) -> RiskAssessment:
        """
        Assess one milestone and persist the outcome.

        The snapshot's attributes drive detection. When the store already
        holds the milestone, its RiskFactor log replaces the snapshot's so
        that factors recorded by earlier runs are never lost. As side
        effects, new risk factors are appended to ``milestone`` and its
        risk_level is overwritten; both are saved to the store.

        Args:
            milestone: Milestone snapshot to assess

        Returns:
            RiskAssessment with the final (time-adjusted) level
        """
        async with self._leases.hold(milestone.id):
            return await self._assess_locked(milestone)

    async def _assess_locked(self, milestone: Milestone) -> RiskAssessment:
        now = self._clock()

        stored = await self._store.get(milestone.id)
        if stored is not None:
            milestone.risk_factors = stored.risk_factors

        active = await self._store.count_active()
        ctx = AnalysisContext(milestone=milestone, active_milestones=active, config=self._config.risk)

        risks = [self._scorer.rate(r) for r in self._analyzer.analyze(ctx)]
        score = self._scorer.score(risks)
        strategies = self._planner.determine_strategies(risks)

        mitigations = {
            s.factor: self._policy.strategy(s.strategy).description for s in strategies
        }
        record_risk_factors(milestone, risks, now, mitigations)

        level = apply_time_rules(milestone, score.level, now, self._config.risk.stale_risk_days)
        previous_level = milestone.risk_level
        milestone.risk_level = level

        assessment = RiskAssessment(
            milestone_id=milestone.id,
            stream_type=milestone.stream_type,
            identified_risks=risks,
            probability=score.probability,
            impact=score.impact,
            risk_score=score.risk_score,
            derived_level=score.level,
            level=level,
            previous_level=previous_level,
            strategies=strategies,
            monitoring_indicators=_unique(i for r in risks for i in r.indicators),
            assessed_at=now,
        )

        await self._store.save(milestone)
        await self._store.save_assessment(assessment)

        if level != previous_level:
            logger.info(
                f"Milestone {milestone.id} risk level {previous_level.value} -> {level.value} "
                f"(score {score.risk_score:.2f})"
            )
        return assessment

    def follow_ups(self, milestone: Milestone, assessment: RiskAssessment) -> MilestoneRiskReport:
        """Escalations, mitigation plan and recommendations for an assessment."""
        now = assessment.assessed_at or self._clock()
        return MilestoneRiskReport(
            assessment=assessment,
            escalations=self._escalation.check(milestone, assessment, now),
            mitigation_plan=self._planner.create_plan(milestone, assessment, now),
            recommendations=milestone_recommendations(assessment, self._policy),
        )

    async def review_milestone(self, milestone: Milestone) -> MilestoneRiskReport:
        """Assess a milestone and derive its follow-ups."""
        assessment = await self.assess_milestone_risk(milestone)
        return self.follow_ups(milestone, assessment)

    async def conduct_risk_assessment(self, scope: str | None = SCOPE_ALL) -> PortfolioAssessment:
        """
        Assess every milestone in a scope.

        Args:
            scope: "all", a stream type, or "streamType:<stream type>"

        Returns:
            PortfolioAssessment with per-level counts, category breakdown,
            recommendations, escalations and mitigation plans

        Raises:
            InvalidScopeError: If the scope names no known stream type
        """
        stream_type = parse_scope(scope)
        milestones = await self._store.list_all(stream_type)

        portfolio = PortfolioAssessment(
            timestamp=self._clock(),
            scope=scope or SCOPE_ALL,
            total_milestones=len(milestones),
        )

        for milestone in milestones:
            report = await self.review_milestone(milestone)
            assessment = report.assessment

            portfolio.assessments.append(assessment)
            portfolio.risk_summary[assessment.level.value] += 1
            self._add_to_breakdown(portfolio.category_breakdown, assessment)
            portfolio.recommendations.extend(report.recommendations)
            portfolio.escalations.extend(report.escalations)
            if report.mitigation_plan is not None:
                portfolio.mitigation_plans.append(report.mitigation_plan)

        portfolio.overall_recommendations = portfolio_recommendations(
            portfolio.risk_summary, portfolio.category_breakdown
        )

        logger.info(
            f"Portfolio risk assessment ({portfolio.scope}): {portfolio.total_milestones} "
            f"milestones, summary {portfolio.risk_summary}"
        )
        return portfolio

    def _add_to_breakdown(
        self, breakdown: dict[str, CategoryBreakdown], assessment: RiskAssessment
    ) -> None:
        for risk in assessment.identified_risks:
            entry = breakdown.get(risk.category.value)
            if entry is None:
                entry = CategoryBreakdown(name=self._policy.category_name(risk.category))
                breakdown[risk.category.value] = entry
            entry.total += 1
            entry.by_level[risk.impact.value] = entry.by_level.get(risk.impact.value, 0) + 1
