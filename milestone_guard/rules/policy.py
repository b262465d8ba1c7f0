# milestone_guard/rules/policy.py
"""
Risk policy: escalation matrix, escalation triggers, mitigation strategies
and recommendation templates.

Loaded from a versioned YAML document into frozen models so the tables can
change without touching scoring logic. Loading fails unless every risk
level, strategy and trigger has an entry.
"""

import logging
from enum import Enum
from importlib import resources
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from milestone_guard.errors import ConfigurationError
from milestone_guard.models.milestone import RiskCategory, RiskLevel
from milestone_guard.models.results import EscalationTier, MitigationStrategy

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = 1


class EscalationTrigger(str, Enum):
    """Ad-hoc escalation triggers evaluated on top of the level matrix."""

    IMMEDIATE_MANAGEMENT_REVIEW = "immediate_management_review"
    EMERGENCY_RESPONSE_TEAM = "emergency_response_team"
    EXECUTIVE_ESCALATION = "executive_escalation"


class TriggerPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    reason: str
    required_levels: tuple[EscalationTier, ...]
    risk_score_above: float | None = None


class StrategyTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    description: str
    effectiveness: str
    actions: tuple[str, ...]


class ContingencyTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    trigger: str
    action: str
    timeline: str


class MitigationPlanTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    phase_duration_days: int = Field(default=7, ge=1)
    resources: tuple[str, ...] = ()
    contingencies: tuple[ContingencyTemplate, ...] = ()


class LevelRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str
    title: str
    timeline: str
    actions: tuple[str, ...] = ()


class RiskPolicy(BaseModel):
    """Immutable risk policy tables."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int
    categories: dict[RiskCategory, str]
    escalation_matrix: dict[RiskLevel, tuple[EscalationTier, ...]]
    escalation_triggers: dict[EscalationTrigger, TriggerPolicy]
    mitigation_strategies: dict[MitigationStrategy, StrategyTemplate]
    mitigation_plan: MitigationPlanTemplate = Field(default_factory=MitigationPlanTemplate)
    level_recommendations: dict[RiskLevel, LevelRecommendation] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_exhaustive(self) -> "RiskPolicy":
        """Every category, level, trigger and strategy must be covered."""
        missing = [
            f"categories.{c.value}" for c in RiskCategory if c not in self.categories
        ]
        missing += [
            f"escalation_matrix.{lv.value}" for lv in RiskLevel if lv not in self.escalation_matrix
        ]
        missing += [
            f"escalation_triggers.{t.value}"
            for t in EscalationTrigger
            if t not in self.escalation_triggers
        ]
        missing += [
            f"mitigation_strategies.{s.value}"
            for s in MitigationStrategy
            if s not in self.mitigation_strategies
        ]
        if missing:
            raise ValueError(f"missing entries: {', '.join(missing)}")

        # Recipients never shrink as the level rises
        previous: set[EscalationTier] = set()
        for level in RiskLevel:
            tiers = set(self.escalation_matrix[level])
            if not previous <= tiers:
                raise ValueError(f"escalation_matrix.{level.value} drops recipients")
            previous = tiers
        return self

    def category_name(self, category: RiskCategory) -> str:
        return self.categories[category]

    def recipients_for(self, level: RiskLevel) -> tuple[EscalationTier, ...]:
        return self.escalation_matrix[level]

    def trigger(self, trigger: EscalationTrigger) -> TriggerPolicy:
        return self.escalation_triggers[trigger]

    def strategy(self, strategy: MitigationStrategy) -> StrategyTemplate:
        return self.mitigation_strategies[strategy]


def _default_policy_path() -> Path:
    return Path(str(resources.files("milestone_guard.rules") / "data" / "risk_policy.yaml"))


def load_risk_policy(path: Path | None = None) -> RiskPolicy:
    """
    Load the risk policy from YAML.

    Args:
        path: Optional policy document (defaults to the packaged risk_policy.yaml)

    Raises:
        ConfigurationError: If the document is unreadable, incomplete, or of
            an unsupported version
    """
    path = path or _default_policy_path()

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        policy = RiskPolicy.model_validate(raw)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Invalid risk policy {path}: {e}")

    if policy.version != SUPPORTED_VERSION:
        raise ConfigurationError(
            f"Unsupported risk policy version {policy.version} in {path} "
            f"(expected {SUPPORTED_VERSION})"
        )

    logger.info(f"Loaded risk policy from {path} (v{policy.version})")
    return policy
