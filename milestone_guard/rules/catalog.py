# milestone_guard/rules/catalog.py
"""
RuleCatalog: per-stream-type quality gates, success criteria and
performance thresholds.

Rules are configuration data, loaded from a versioned YAML document into
frozen models. A catalog is read-only and safe to share between
concurrent evaluations.
"""

import logging
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from milestone_guard.errors import ConfigurationError, NoRuleSetError
from milestone_guard.models.milestone import StreamType
from milestone_guard.models.results import MetricDirection

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = 1

# Direction applied to any metric not named in the directionality sets
DEFAULT_DIRECTION = MetricDirection.HIGHER_IS_BETTER


class CriterionRule(BaseModel):
    """Threshold condition for a success criterion."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    threshold: float = 1.0
    direction: MetricDirection = MetricDirection.HIGHER_IS_BETTER


class ThresholdRule(BaseModel):
    """Target value for one performance metric."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    metric: str
    threshold: float


class RuleSet(BaseModel):
    """Immutable rule set for one stream type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    stream_type: StreamType
    quality_gates: tuple[str, ...] = ()
    success_criteria: tuple[str, ...] = ()
    performance_thresholds: tuple[ThresholdRule, ...] = ()


class _MetricDirections(BaseModel):
    model_config = ConfigDict(extra="forbid")

    higher_is_better: list[str] = Field(default_factory=list)
    lower_is_better: list[str] = Field(default_factory=list)


class _StreamRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    quality_gates: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)
    performance_thresholds: dict[str, float] = Field(default_factory=dict)


class _CriterionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    threshold: float = 1.0
    direction: MetricDirection = MetricDirection.HIGHER_IS_BETTER


class _RulesDocument(BaseModel):
    """Raw shape of rulesets.yaml."""

    model_config = ConfigDict(extra="forbid")

    version: int
    metric_directions: _MetricDirections = Field(default_factory=_MetricDirections)
    improvement_metrics: list[str] = Field(default_factory=list)
    criteria: dict[str, _CriterionSpec] = Field(default_factory=dict)
    stream_types: dict[StreamType, _StreamRules] = Field(default_factory=dict)


class RuleCatalog:
    """
    Read-only lookup of RuleSets, criterion definitions and metric
    directionality.
    """

    def __init__(
        self,
        rule_sets: Mapping[StreamType, RuleSet],
        criteria: Mapping[str, CriterionRule] | None = None,
        directions: Mapping[str, MetricDirection] | None = None,
        improvement_metrics: frozenset[str] = frozenset(),
        version: int = SUPPORTED_VERSION,
    ) -> None:
        self._rule_sets = MappingProxyType(dict(rule_sets))
        self._criteria = MappingProxyType(dict(criteria or {}))
        self._directions = MappingProxyType(dict(directions or {}))
        self._improvement_metrics = frozenset(improvement_metrics)
        self.version = version

    @property
    def stream_types(self) -> list[StreamType]:
        return list(self._rule_sets)

    def get(self, stream_type: StreamType | str) -> RuleSet:
        """
        Get the RuleSet for a stream type.

        Raises:
            NoRuleSetError: If the stream type has no configured RuleSet
        """
        try:
            key = StreamType(stream_type)
        except ValueError:
            raise NoRuleSetError(str(stream_type))
        rule_set = self._rule_sets.get(key)
        if rule_set is None:
            raise NoRuleSetError(key.value)
        return rule_set

    def criterion(self, name: str) -> CriterionRule:
        """Criterion definition; unknown names are boolean checks (value >= 1)."""
        return self._criteria.get(name) or CriterionRule(name=name)

    def direction_for(self, metric: str) -> MetricDirection:
        """Comparison direction for a metric (unknown metrics: higher is better)."""
        return self._directions.get(metric, DEFAULT_DIRECTION)

    def is_improvement_metric(self, metric: str) -> bool:
        return metric in self._improvement_metrics


def _default_rules_path() -> Path:
    return Path(str(resources.files("milestone_guard.rules") / "data" / "rulesets.yaml"))


def load_rule_catalog(path: Path | None = None) -> RuleCatalog:
    """
    Load a RuleCatalog from YAML.

    Args:
        path: Optional rules document (defaults to the packaged rulesets.yaml)

    Raises:
        ConfigurationError: If the document is unreadable, malformed, or of
            an unsupported version
    """
    path = path or _default_rules_path()

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        document = _RulesDocument.model_validate(raw)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Invalid rules document {path}: {e}")

    if document.version != SUPPORTED_VERSION:
        raise ConfigurationError(
            f"Unsupported rules version {document.version} in {path} "
            f"(expected {SUPPORTED_VERSION})"
        )

    directions: dict[str, MetricDirection] = {}
    for metric in document.metric_directions.higher_is_better:
        directions[metric] = MetricDirection.HIGHER_IS_BETTER
    for metric in document.metric_directions.lower_is_better:
        if metric in directions:
            raise ConfigurationError(f"Metric '{metric}' listed with both directions")
        directions[metric] = MetricDirection.LOWER_IS_BETTER

    criteria = {
        name: CriterionRule(name=name, threshold=spec.threshold, direction=spec.direction)
        for name, spec in document.criteria.items()
    }

    rule_sets = {
        stream_type: RuleSet(
            stream_type=stream_type,
            quality_gates=tuple(rules.quality_gates),
            success_criteria=tuple(rules.success_criteria),
            performance_thresholds=tuple(
                ThresholdRule(metric=metric, threshold=threshold)
                for metric, threshold in rules.performance_thresholds.items()
            ),
        )
        for stream_type, rules in document.stream_types.items()
    }

    logger.info(f"Loaded {len(rule_sets)} rule set(s) from {path} (v{document.version})")
    return RuleCatalog(
        rule_sets,
        criteria=criteria,
        directions=directions,
        improvement_metrics=frozenset(document.improvement_metrics),
        version=document.version,
    )
