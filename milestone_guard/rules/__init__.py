"""Versioned, read-only rule and policy tables."""

from milestone_guard.rules.catalog import (
    CriterionRule,
    RuleCatalog,
    RuleSet,
    ThresholdRule,
    load_rule_catalog,
)
from milestone_guard.rules.policy import EscalationTrigger, RiskPolicy, load_risk_policy

__all__ = [
    "RuleCatalog",
    "RuleSet",
    "CriterionRule",
    "ThresholdRule",
    "load_rule_catalog",
    "RiskPolicy",
    "EscalationTrigger",
    "load_risk_policy",
]
