# milestone_guard/models/results.py
"""
Pydantic result models produced by the validation and risk engines.

All results are plain data: they describe outcomes, escalations and plans
but never trigger delivery themselves.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from milestone_guard.models.milestone import (
    MilestoneStatus,
    RiskCategory,
    RiskLevel,
    StreamType,
)


class RuleStatus(str, Enum):
    """Outcome of a single gate, criterion or threshold evaluation."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class MetricDirection(str, Enum):
    """How a metric value is compared against its threshold."""

    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class GateResult(BaseModel):
    """Result of evaluating one quality gate."""

    name: str
    status: RuleStatus
    score: float = Field(default=0.0, description="Recorded gate score (0 on error)")
    details: dict = Field(default_factory=dict)


class CriterionResult(BaseModel):
    """Result of evaluating one success criterion."""

    name: str
    status: RuleStatus
    value: float | None = None
    threshold: float | None = None
    score: float = 0.0
    details: dict = Field(default_factory=dict)


class ThresholdResult(BaseModel):
    """Result of comparing one live metric against its threshold."""

    name: str
    status: RuleStatus
    value: float = 0.0
    threshold: float
    direction: MetricDirection = MetricDirection.HIGHER_IS_BETTER
    improvement: float = 0.0
    score: float = 0.0
    details: dict = Field(default_factory=dict)


class Blocker(BaseModel):
    """Informational blocker preventing milestone completion."""

    type: str = Field(description="quality_gate, success_criteria or risk")
    description: str
    severity: RiskLevel
    impact: str


class Recommendation(BaseModel):
    """A suggested follow-up for a milestone or for the whole portfolio."""

    type: str
    priority: RiskLevel
    title: str
    description: str = ""
    actions: list[str] = Field(default_factory=list)
    timeline: str | None = None
    milestone_id: str | None = None


class ValidationResult(BaseModel):
    """Outcome of validating one milestone against its RuleSet."""

    milestone_id: str
    stream_type: StreamType
    status: MilestoneStatus
    timestamp: datetime
    gate_results: list[GateResult] = Field(default_factory=list)
    criteria_results: list[CriterionResult] = Field(default_factory=list)
    threshold_results: list[ThresholdResult] = Field(default_factory=list)
    overall_score: float = Field(default=0.0, ge=0.0, le=100.0)
    is_validated: bool = False
    blockers: list[Blocker] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)


class IdentifiedRisk(BaseModel):
    """A risk detected by one of the category analyzers."""

    category: RiskCategory
    factor: str
    description: str
    probability: RiskLevel
    impact: RiskLevel
    indicators: list[str] = Field(default_factory=list)
    level: RiskLevel = Field(
        default=RiskLevel.LOW, description="Level of this risk alone (probability x impact)"
    )
    priority: int = Field(default=3, description="0 = most urgent (critical impact) ... 3 = least")


class MitigationStrategy(str, Enum):
    """Responses available for an identified risk."""

    AVOID = "avoid"
    MITIGATE = "mitigate"
    TRANSFER = "transfer"
    ACCEPT = "accept"


class StrategyRecommendation(BaseModel):
    """The strategy selected for one identified risk."""

    factor: str
    category: RiskCategory
    risk: str
    strategy: MitigationStrategy
    strategy_name: str
    effectiveness: str
    priority: int


class RiskAssessment(BaseModel):
    """Quantitative risk assessment for one milestone."""

    milestone_id: str
    stream_type: StreamType
    identified_risks: list[IdentifiedRisk] = Field(default_factory=list)
    probability: float = 0.0
    impact: float = 0.0
    risk_score: float = 0.0
    derived_level: RiskLevel = Field(
        default=RiskLevel.LOW, description="Level from scoring alone, before time rules"
    )
    level: RiskLevel = RiskLevel.LOW
    previous_level: RiskLevel | None = None
    strategies: list[StrategyRecommendation] = Field(default_factory=list)
    monitoring_indicators: list[str] = Field(default_factory=list)
    assessed_at: datetime | None = None


class ActionPlan(BaseModel):
    """Canned actions for one risk under its selected strategy."""

    factor: str
    strategy: MitigationStrategy
    strategy_name: str
    priority: int
    actions: list[str] = Field(default_factory=list)
    owner: str | None = None
    status: str = "pending"


class TimelinePhase(BaseModel):
    """One weekly phase of a mitigation timeline."""

    name: str
    start: datetime
    duration_days: int
    factor: str
    actions: list[str] = Field(default_factory=list)


class MitigationTimeline(BaseModel):
    start: datetime
    phases: list[TimelinePhase] = Field(default_factory=list)


class Contingency(BaseModel):
    trigger: str
    action: str
    timeline: str


class MitigationPlan(BaseModel):
    """Mitigation plan for a milestone at high or critical risk."""

    milestone_id: str
    risk_level: RiskLevel
    created_at: datetime
    action_plans: list[ActionPlan] = Field(default_factory=list)
    timeline: MitigationTimeline
    resources: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)
    contingencies: list[Contingency] = Field(default_factory=list)
    status: str = "pending"


class EscalationTier(str, Enum):
    """Recipient tiers, in increasing seniority."""

    TEAM = "team"
    MANAGER = "manager"
    DIRECTOR = "director"
    EXECUTIVE = "executive"


class EscalationEvent(BaseModel):
    """An escalation request. Delivery is the caller's responsibility."""

    milestone_id: str
    kind: str = Field(description="risk_level or the name of the trigger that fired")
    reason: str
    risk_level: RiskLevel
    required_levels: list[EscalationTier] = Field(default_factory=list)
    status: str = "pending"
    created_at: datetime


class MilestoneRiskReport(BaseModel):
    """A risk assessment with the follow-ups derived from it."""

    assessment: RiskAssessment
    escalations: list[EscalationEvent] = Field(default_factory=list)
    mitigation_plan: MitigationPlan | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)


class CategoryBreakdown(BaseModel):
    """Count of identified risks in one category, split by impact."""

    name: str
    total: int = 0
    by_level: dict[str, int] = Field(default_factory=dict)


class PortfolioAssessment(BaseModel):
    """Risk assessment across every milestone in a scope."""

    timestamp: datetime
    scope: str
    total_milestones: int = 0
    risk_summary: dict[str, int] = Field(
        default_factory=lambda: {level.value: 0 for level in RiskLevel}
    )
    category_breakdown: dict[str, CategoryBreakdown] = Field(default_factory=dict)
    assessments: list[RiskAssessment] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    overall_recommendations: list[Recommendation] = Field(default_factory=list)
    escalations: list[EscalationEvent] = Field(default_factory=list)
    mitigation_plans: list[MitigationPlan] = Field(default_factory=list)


class BatchItemError(BaseModel):
    """Failure (or skip) of one milestone inside a batch."""

    milestone_id: str
    error_type: str
    message: str


class BatchValidationReport(BaseModel):
    """Results of a batch validation. Always partial-tolerant."""

    requested: int
    results: list[ValidationResult] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)
