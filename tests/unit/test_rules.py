# tests/unit/test_rules.py
"""
Unit tests for the rule catalog and the risk policy loaders.
"""

from importlib import resources
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from milestone_guard.errors import ConfigurationError, NoRuleSetError
from milestone_guard.models.milestone import RiskLevel, StreamType
from milestone_guard.models.results import EscalationTier, MetricDirection, MitigationStrategy
from milestone_guard.rules.catalog import RuleCatalog, load_rule_catalog
from milestone_guard.rules.policy import EscalationTrigger, load_risk_policy


def _packaged(name: str) -> dict:
    text = (resources.files("milestone_guard.rules") / "data" / name).read_text(encoding="utf-8")
    return yaml.safe_load(text)


def _write(tmp_path: Path, name: str, document) -> Path:
    path = tmp_path / name
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


class TestRuleCatalog:
    def test_packaged_catalog_covers_every_stream_type(self):
        catalog = load_rule_catalog()

        assert set(catalog.stream_types) == set(StreamType)
        assert catalog.version == 1

    def test_security_rule_set(self):
        rule_set = load_rule_catalog().get(StreamType.SECURITY_REMEDIATION)

        assert rule_set.quality_gates == ("security_scan", "vulnerability_assessment", "compliance_check")
        assert rule_set.success_criteria == (
            "no_critical_vulnerabilities",
            "all_tests_passed",
            "documentation_updated",
        )
        assert [(t.metric, t.threshold) for t in rule_set.performance_thresholds] == [
            ("responseTime", 200),
            ("memoryUsage", 100),
            ("cpuUsage", 80),
        ]

    def test_get_accepts_stream_type_value(self):
        rule_set = load_rule_catalog().get("data_migration")

        assert rule_set.stream_type == StreamType.DATA_MIGRATION

    @pytest.mark.parametrize("stream_type", ["mobile_app", StreamType.REALTIME_FEATURES])
    def test_missing_rule_set(self, stream_type):
        catalog = RuleCatalog({})

        with pytest.raises(NoRuleSetError, match="No validation rules defined for stream"):
            catalog.get(stream_type)

    def test_metric_directions(self):
        catalog = load_rule_catalog()

        assert catalog.direction_for("latency") == MetricDirection.LOWER_IS_BETTER
        assert catalog.direction_for("uptime") == MetricDirection.HIGHER_IS_BETTER
        assert catalog.direction_for("somethingNew") == MetricDirection.HIGHER_IS_BETTER

    def test_criteria_definitions(self):
        catalog = load_rule_catalog()

        zero_loss = catalog.criterion("zero_data_loss")
        assert zero_loss.threshold == 0
        assert zero_loss.direction == MetricDirection.LOWER_IS_BETTER

        unknown = catalog.criterion("shipped")
        assert unknown.threshold == 1.0
        assert unknown.direction == MetricDirection.HIGHER_IS_BETTER

    def test_improvement_metrics(self):
        catalog = load_rule_catalog()

        assert catalog.is_improvement_metric("throughputImprovement")
        assert not catalog.is_improvement_metric("latency")

    def test_unsupported_version(self, tmp_path):
        document = _packaged("rulesets.yaml")
        document["version"] = 2

        with pytest.raises(ConfigurationError, match="Unsupported rules version 2"):
            load_rule_catalog(_write(tmp_path, "rules.yaml", document))

    def test_conflicting_directions(self, tmp_path):
        document = _packaged("rulesets.yaml")
        document["metric_directions"]["lower_is_better"].append("uptime")

        with pytest.raises(ConfigurationError, match="uptime"):
            load_rule_catalog(_write(tmp_path, "rules.yaml", document))

    def test_unknown_stream_type_key(self, tmp_path):
        document = _packaged("rulesets.yaml")
        document["stream_types"]["mobile_app"] = {"quality_gates": ["store_review"]}

        with pytest.raises(ConfigurationError, match="Invalid rules document"):
            load_rule_catalog(_write(tmp_path, "rules.yaml", document))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_rule_catalog(tmp_path / "absent.yaml")


class TestRiskPolicy:
    def test_packaged_policy(self):
        policy = load_risk_policy()

        assert policy.recipients_for(RiskLevel.LOW) == (EscalationTier.TEAM,)
        assert policy.recipients_for(RiskLevel.CRITICAL)[-1] == EscalationTier.EXECUTIVE
        assert policy.trigger(EscalationTrigger.IMMEDIATE_MANAGEMENT_REVIEW).risk_score_above == 10
        assert policy.strategy(MitigationStrategy.ACCEPT).effectiveness == "Low"
        assert policy.mitigation_plan.phase_duration_days == 7
        assert RiskLevel.LOW not in policy.level_recommendations

    def test_missing_strategy_is_rejected(self, tmp_path):
        document = _packaged("risk_policy.yaml")
        del document["mitigation_strategies"]["transfer"]

        with pytest.raises(ConfigurationError, match="mitigation_strategies.transfer"):
            load_risk_policy(_write(tmp_path, "policy.yaml", document))

    def test_missing_trigger_is_rejected(self, tmp_path):
        document = _packaged("risk_policy.yaml")
        del document["escalation_triggers"]["executive_escalation"]

        with pytest.raises(ConfigurationError, match="escalation_triggers.executive_escalation"):
            load_risk_policy(_write(tmp_path, "policy.yaml", document))

    def test_shrinking_matrix_is_rejected(self, tmp_path):
        document = _packaged("risk_policy.yaml")
        document["escalation_matrix"]["high"] = ["director"]

        with pytest.raises(ConfigurationError, match="drops recipients"):
            load_risk_policy(_write(tmp_path, "policy.yaml", document))

    def test_unsupported_version(self, tmp_path):
        document = _packaged("risk_policy.yaml")
        document["version"] = 3

        with pytest.raises(ConfigurationError, match="Unsupported risk policy version 3"):
            load_risk_policy(_write(tmp_path, "policy.yaml", document))

    def test_policy_is_frozen(self):
        policy = load_risk_policy()

        with pytest.raises(ValidationError):
            policy.version = 2
