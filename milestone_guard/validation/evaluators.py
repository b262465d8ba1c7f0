# milestone_guard/validation/evaluators.py
"""
Quality gate, success criterion and performance threshold evaluators.

Each evaluator turns one named rule plus a milestone snapshot and its live
metrics into a result. Any exception raised while evaluating a rule is
converted into an ``error`` result with score 0, so one broken rule never
aborts its siblings.

Recorded outcomes are read from metric keys:
    gate.<name>       gate score 0-100
    criterion.<name>  criterion value compared against its catalog threshold
    <metric>          performance metric value
Live metrics take precedence over the milestone's stored metrics.
"""

import logging
import math
from typing import Callable, Mapping

from milestone_guard.errors import EvaluationError
from milestone_guard.models.milestone import Milestone
from milestone_guard.models.results import (
    CriterionResult,
    GateResult,
    MetricDirection,
    RuleStatus,
    ThresholdResult,
)
from milestone_guard.rules.catalog import RuleCatalog

logger = logging.getLogger(__name__)

GATE_PREFIX = "gate."
CRITERION_PREFIX = "criterion."

# Custom check: (milestone, live_metrics) -> recorded value
RuleCheck = Callable[[Milestone, Mapping[str, float]], float]


def meets_threshold(value: float, threshold: float, direction: MetricDirection) -> bool:
    """Compare a value against a threshold using the metric's direction."""
    if direction == MetricDirection.LOWER_IS_BETTER:
        return value <= threshold
    return value >= threshold


def lookup_metric(
    key: str, milestone: Milestone, live_metrics: Mapping[str, float]
) -> tuple[float | None, str]:
    """
    Find a metric value and where it came from.

    Returns:
        (value, source) where source is "live", "stored" or "missing"
    """
    if key in live_metrics:
        return live_metrics[key], "live"
    if key in milestone.metrics:
        return milestone.metrics[key], "stored"
    return None, "missing"


def _checked(value: float, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise EvaluationError(f"{what} is not a finite number: {value!r}")
    return float(value)


class QualityGateEvaluator:
    """Evaluates named quality gates from recorded gate scores."""

    def __init__(self, pass_score: float = 80.0, checks: Mapping[str, RuleCheck] | None = None):
        """
        Args:
            pass_score: Minimum recorded score for a gate to pass
            checks: Optional per-gate callables overriding the metric lookup
        """
        self.pass_score = pass_score
        self._checks = dict(checks or {})

    def evaluate(
        self, gate: str, milestone: Milestone, live_metrics: Mapping[str, float]
    ) -> GateResult:
        try:
            return self._evaluate(gate, milestone, live_metrics)
        except Exception as e:
            logger.warning(f"Quality gate '{gate}' errored for milestone {milestone.id}: {e}")
            return GateResult(
                name=gate, status=RuleStatus.ERROR, score=0.0, details={"error": str(e)}
            )

    def _evaluate(
        self, gate: str, milestone: Milestone, live_metrics: Mapping[str, float]
    ) -> GateResult:
        check = self._checks.get(gate)
        if check is not None:
            raw, source = check(milestone, live_metrics), "check"
        else:
            raw, source = lookup_metric(GATE_PREFIX + gate, milestone, live_metrics)
            if raw is None:
                raise EvaluationError(f"No recorded result for quality gate '{gate}'")

        score = _checked(raw, f"Quality gate '{gate}' score")
        passed = score >= self.pass_score
        return GateResult(
            name=gate,
            status=RuleStatus.PASSED if passed else RuleStatus.FAILED,
            score=score,
            details={"source": source, "pass_score": self.pass_score},
        )


class SuccessCriteriaEvaluator:
    """Evaluates boolean/threshold success criteria defined in the catalog."""

    def __init__(self, catalog: RuleCatalog, checks: Mapping[str, RuleCheck] | None = None):
        self.catalog = catalog
        self._checks = dict(checks or {})

    def evaluate(
        self, criterion: str, milestone: Milestone, live_metrics: Mapping[str, float]
    ) -> CriterionResult:
        try:
            return self._evaluate(criterion, milestone, live_metrics)
        except Exception as e:
            logger.warning(
                f"Success criterion '{criterion}' errored for milestone {milestone.id}: {e}"
            )
            return CriterionResult(
                name=criterion, status=RuleStatus.ERROR, score=0.0, details={"error": str(e)}
            )

    def _evaluate(
        self, criterion: str, milestone: Milestone, live_metrics: Mapping[str, float]
    ) -> CriterionResult:
        rule = self.catalog.criterion(criterion)

        check = self._checks.get(criterion)
        if check is not None:
            raw, source = check(milestone, live_metrics), "check"
        else:
            raw, source = lookup_metric(CRITERION_PREFIX + criterion, milestone, live_metrics)
            if raw is None:
                raise EvaluationError(f"No recorded value for success criterion '{criterion}'")

        value = _checked(raw, f"Success criterion '{criterion}' value")
        passed = meets_threshold(value, rule.threshold, rule.direction)
        return CriterionResult(
            name=criterion,
            status=RuleStatus.PASSED if passed else RuleStatus.FAILED,
            value=value,
            threshold=rule.threshold,
            score=100.0 if passed else 0.0,
            details={"source": source, "direction": rule.direction.value},
        )


class PerformanceThresholdEvaluator:
    """
    Compares live metric values against configured thresholds.

    A metric missing from both live and stored metrics fails, whatever its
    direction.
    """

    def __init__(self, catalog: RuleCatalog):
        self.catalog = catalog

    def evaluate(
        self,
        metric: str,
        threshold: float,
        milestone: Milestone,
        live_metrics: Mapping[str, float],
    ) -> ThresholdResult:
        try:
            return self._evaluate(metric, threshold, milestone, live_metrics)
        except Exception as e:
            logger.warning(
                f"Performance threshold '{metric}' errored for milestone {milestone.id}: {e}"
            )
            return ThresholdResult(
                name=metric,
                status=RuleStatus.ERROR,
                threshold=threshold,
                score=0.0,
                details={"error": str(e)},
            )

    def _evaluate(
        self,
        metric: str,
        threshold: float,
        milestone: Milestone,
        live_metrics: Mapping[str, float],
    ) -> ThresholdResult:
        direction = self.catalog.direction_for(metric)
        raw, source = lookup_metric(metric, milestone, live_metrics)
        if raw is None:
            return ThresholdResult(
                name=metric,
                status=RuleStatus.FAILED,
                value=0.0,
                threshold=threshold,
                direction=direction,
                score=0.0,
                details={"source": "default", "current": None, "target": threshold},
            )
        value = _checked(raw, f"Metric '{metric}'")

        passed = meets_threshold(value, threshold, direction)
        improvement = value if self.catalog.is_improvement_metric(metric) else 0.0

        return ThresholdResult(
            name=metric,
            status=RuleStatus.PASSED if passed else RuleStatus.FAILED,
            value=value,
            threshold=threshold,
            direction=direction,
            improvement=improvement,
            score=100.0 if passed else 0.0,
            details={"source": source, "current": value, "target": threshold},
        )
