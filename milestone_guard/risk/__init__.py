"""Risk analysis, scoring, mitigation planning and escalation."""

from milestone_guard.risk.analyzer import DETECTORS, AnalysisContext, RiskAnalyzer
from milestone_guard.risk.escalation import EscalationEngine
from milestone_guard.risk.lifecycle import apply_time_rules, record_risk_factors
from milestone_guard.risk.manager import RiskManager, parse_scope
from milestone_guard.risk.mitigation import MitigationPlanner, select_strategy
from milestone_guard.risk.scorer import RiskScore, RiskScorer, level_for_score

__all__ = [
    "AnalysisContext",
    "DETECTORS",
    "RiskAnalyzer",
    "RiskScorer",
    "RiskScore",
    "level_for_score",
    "record_risk_factors",
    "apply_time_rules",
    "MitigationPlanner",
    "select_strategy",
    "EscalationEngine",
    "RiskManager",
    "parse_scope",
]
