# milestone_guard/risk/analyzer.py
"""
Risk analyzer: five independent category analyzers over milestone attributes.

Each detector is a stateless rule (condition -> risk record with fixed
probability, impact and indicators). Detectors are grouped per category in
an exhaustive table; outputs are concatenated in category order.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from milestone_guard.config.schema import RiskConfig
from milestone_guard.errors import ConfigurationError
from milestone_guard.models.milestone import Milestone, RiskCategory, RiskLevel, StreamType
from milestone_guard.models.results import IdentifiedRisk

logger = logging.getLogger(__name__)

# Skills each stream type needs; streams not listed need nothing special
REQUIRED_SKILLS: dict[StreamType, tuple[str, ...]] = {
    StreamType.SECURITY_REMEDIATION: ("security", "vulnerability_assessment"),
    StreamType.FRONTEND_AUTH_MIGRATION: ("authentication", "frontend_development"),
    StreamType.PERFORMANCE_OPTIMIZATION: ("performance_tuning", "profiling"),
}


@dataclass
class AnalysisContext:
    """Everything a detector may look at besides the milestone itself."""

    milestone: Milestone
    active_milestones: int = 0
    config: RiskConfig = field(default_factory=RiskConfig)


Detector = Callable[[AnalysisContext], IdentifiedRisk | None]


def _risk(
    category: RiskCategory,
    factor: str,
    description: str,
    probability: RiskLevel,
    impact: RiskLevel,
    indicators: tuple[str, ...] = (),
) -> IdentifiedRisk:
    return IdentifiedRisk(
        category=category,
        factor=factor,
        description=description,
        probability=probability,
        impact=impact,
        indicators=list(indicators),
    )


# Technical

def complexity_overestimate(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.PERFORMANCE_OPTIMIZATION:
        return None
    return _risk(
        RiskCategory.TECHNICAL,
        "complexity_overestimate",
        "High technical complexity may lead to implementation delays",
        RiskLevel.MEDIUM,
        RiskLevel.HIGH,
        ("Complex algorithms", "New technologies", "Architecture changes"),
    )


def integration_challenges(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.INTEGRATION_TESTING:
        return None
    return _risk(
        RiskCategory.TECHNICAL,
        "integration_challenges",
        "Complex integration requirements may cause compatibility issues",
        RiskLevel.HIGH,
        RiskLevel.MEDIUM,
        ("Multiple system integrations", "Third-party dependencies", "API compatibility"),
    )


def performance_problems(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.PERFORMANCE_OPTIMIZATION:
        return None
    return _risk(
        RiskCategory.TECHNICAL,
        "performance_problems",
        "High performance requirements may be difficult to achieve",
        RiskLevel.MEDIUM,
        RiskLevel.HIGH,
        ("Real-time requirements", "High concurrency", "Large data volumes"),
    )


def security_vulnerabilities(ctx: AnalysisContext) -> IdentifiedRisk | None:
    milestone = ctx.milestone
    if (
        milestone.stream_type != StreamType.SECURITY_REMEDIATION
        and "security" not in milestone.title.lower()
    ):
        return None
    return _risk(
        RiskCategory.TECHNICAL,
        "security_vulnerabilities",
        "Security-focused work may uncover additional vulnerabilities",
        RiskLevel.MEDIUM,
        RiskLevel.CRITICAL,
        ("Security code changes", "Authentication modifications", "Data protection updates"),
    )


# Resource

def team_capacity_overflow(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.active_milestones <= ctx.config.team_capacity_limit:
        return None
    return _risk(
        RiskCategory.RESOURCE,
        "team_capacity_overflow",
        "Team is currently overloaded with multiple milestones",
        RiskLevel.HIGH,
        RiskLevel.HIGH,
        ("Multiple active milestones", "Resource allocation conflicts", "Timeline pressure"),
    )


def skill_gaps(ctx: AnalysisContext) -> IdentifiedRisk | None:
    required = REQUIRED_SKILLS.get(ctx.milestone.stream_type, ())
    available = set(ctx.config.available_skills)
    if all(skill in available for skill in required):
        return None
    return _risk(
        RiskCategory.RESOURCE,
        "skill_gaps",
        "Required skills may not be available in current team",
        RiskLevel.MEDIUM,
        RiskLevel.HIGH,
        ("New technology requirements", "Specialized knowledge needed", "Training time required"),
    )


def external_dependency_delays(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if not ctx.milestone.dependencies:
        return None
    return _risk(
        RiskCategory.RESOURCE,
        "external_dependency_delays",
        "External dependencies may cause delays",
        RiskLevel.MEDIUM,
        RiskLevel.MEDIUM,
        ("Vendor dependencies", "Third-party APIs", "External approvals"),
    )


# Schedule

def unrealistic_timelines(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.planned_duration_days >= ctx.config.aggressive_timeline_days:
        return None
    return _risk(
        RiskCategory.SCHEDULE,
        "unrealistic_timelines",
        "Aggressive timeline may not account for all complexities",
        RiskLevel.HIGH,
        RiskLevel.HIGH,
        ("Compressed schedules", "Limited testing time", "Rapid delivery expectations"),
    )


def dependency_delays(ctx: AnalysisContext) -> IdentifiedRisk | None:
    count = len(ctx.milestone.dependencies)
    if count == 0:
        return None
    return _risk(
        RiskCategory.SCHEDULE,
        "dependency_delays",
        f"{count} dependencies may cause delays",
        RiskLevel.MEDIUM,
        RiskLevel.MEDIUM,
    )


def scope_creep(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if len(ctx.milestone.description) <= ctx.config.scope_creep_description:
        return None
    return _risk(
        RiskCategory.SCHEDULE,
        "scope_creep",
        "Scope may expand beyond original requirements",
        RiskLevel.MEDIUM,
        RiskLevel.MEDIUM,
        ("Vague requirements", "Frequent requirement changes", "Feature additions"),
    )


def quality_gate_failures(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.INTEGRATION_TESTING:
        return None
    return _risk(
        RiskCategory.SCHEDULE,
        "quality_gate_failures",
        "Quality gates may require significant rework",
        RiskLevel.MEDIUM,
        RiskLevel.HIGH,
        ("Complex testing requirements", "Strict quality standards", "Multiple validation steps"),
    )


# Quality

def requirement_ambiguity(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if len(ctx.milestone.description) > ctx.config.clarity_min_description:
        return None
    return _risk(
        RiskCategory.QUALITY,
        "requirement_ambiguity",
        "Unclear requirements may lead to rework and quality issues",
        RiskLevel.HIGH,
        RiskLevel.HIGH,
        ("Unclear specifications", "Missing acceptance criteria", "Vague user stories"),
    )


def testing_coverage_gaps(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type == StreamType.INTEGRATION_TESTING:
        return None
    return _risk(
        RiskCategory.QUALITY,
        "testing_coverage_gaps",
        "Inadequate testing may allow quality issues to reach production",
        RiskLevel.MEDIUM,
        RiskLevel.HIGH,
        ("Limited test automation", "Complex testing scenarios", "Time pressure on testing"),
    )


def user_acceptance_failures(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.FRONTEND_AUTH_MIGRATION:
        return None
    return _risk(
        RiskCategory.QUALITY,
        "user_acceptance_failures",
        "User acceptance criteria may be difficult to meet",
        RiskLevel.MEDIUM,
        RiskLevel.MEDIUM,
        ("Complex user workflows", "User training requirements", "Change management needs"),
    )


# External

def vendor_delays(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.DATA_MIGRATION:
        return None
    return _risk(
        RiskCategory.EXTERNAL,
        "vendor_delays",
        "Third-party migration tools may cause delays",
        RiskLevel.LOW,
        RiskLevel.MEDIUM,
    )


def regulatory_changes(ctx: AnalysisContext) -> IdentifiedRisk | None:
    if ctx.milestone.stream_type != StreamType.SECURITY_REMEDIATION:
        return None
    return _risk(
        RiskCategory.EXTERNAL,
        "regulatory_changes",
        "Regulatory requirements may change during implementation",
        RiskLevel.LOW,
        RiskLevel.HIGH,
    )


DETECTORS: dict[RiskCategory, tuple[Detector, ...]] = {
    RiskCategory.TECHNICAL: (
        complexity_overestimate,
        integration_challenges,
        performance_problems,
        security_vulnerabilities,
    ),
    RiskCategory.RESOURCE: (
        team_capacity_overflow,
        skill_gaps,
        external_dependency_delays,
    ),
    RiskCategory.SCHEDULE: (
        unrealistic_timelines,
        dependency_delays,
        scope_creep,
        quality_gate_failures,
    ),
    RiskCategory.QUALITY: (
        requirement_ambiguity,
        testing_coverage_gaps,
        user_acceptance_failures,
    ),
    RiskCategory.EXTERNAL: (
        vendor_delays,
        regulatory_changes,
    ),
}


class RiskAnalyzer:
    """
    Runs every category's detectors against a milestone.

    A custom detector table may be injected; it must cover every
    RiskCategory (an empty tuple is an explicit "nothing to detect").
    """

    def __init__(self, detectors: dict[RiskCategory, tuple[Detector, ...]] | None = None):
        detectors = DETECTORS if detectors is None else detectors
        missing = [c.value for c in RiskCategory if c not in detectors]
        if missing:
            raise ConfigurationError(f"No risk detectors registered for: {', '.join(missing)}")
        self._detectors = detectors

    def analyze_category(self, category: RiskCategory, ctx: AnalysisContext) -> list[IdentifiedRisk]:
        """Run one category's detectors; each detected risk must carry that category."""
        risks = []
        for detect in self._detectors[category]:
            risk = detect(ctx)
            if risk is None:
                continue
            if risk.category != category:
                raise ConfigurationError(
                    f"Detector {getattr(detect, '__name__', detect)} registered under "
                    f"{category.value} produced a {risk.category.value} risk"
                )
            risks.append(risk)
        return risks

    def analyze(self, ctx: AnalysisContext) -> list[IdentifiedRisk]:
        """
        Identify risks across all five categories.

        Args:
            ctx: Milestone plus system-wide inputs (active milestone count, config)

        Returns:
            Identified risks, grouped by category in RiskCategory order
        """
        risks = []
        for category in RiskCategory:
            risks.extend(self.analyze_category(category, ctx))

        logger.debug(
            f"Milestone {ctx.milestone.id}: {len(risks)} risks identified "
            f"({', '.join(r.factor for r in risks) or 'none'})"
        )
        return risks
