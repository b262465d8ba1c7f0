# tests/unit/test_validator.py
"""
Unit tests for MilestoneValidator: single validation, batch validation
with failure isolation and cancellation, and live metrics fallback.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from milestone_guard.config.schema import BatchConfig, MilestoneGuardConfig
from milestone_guard.errors import MilestoneNotFoundError, NoRuleSetError
from milestone_guard.metrics.provider import MetricsProvider, StaticMetricsProvider
from milestone_guard.models.milestone import Milestone, StreamType
from milestone_guard.models.results import RuleStatus
from milestone_guard.models.store import InMemoryMilestoneStore
from milestone_guard.rules.catalog import RuleCatalog, load_rule_catalog
from milestone_guard.validation.validator import MilestoneValidator

PASSING_SECURITY_METRICS = {
    "gate.security_scan": 95,
    "gate.vulnerability_assessment": 90,
    "gate.compliance_check": 88,
    "criterion.no_critical_vulnerabilities": 0,
    "criterion.all_tests_passed": 97,
    "criterion.documentation_updated": 1,
    "responseTime": 150,
    "memoryUsage": 64,
    "cpuUsage": 40,
}


def _make_milestone(milestone_id="ms-1", metrics=None, stream_type=StreamType.SECURITY_REMEDIATION):
    return Milestone(
        id=milestone_id,
        stream_type=stream_type,
        title="Rotate signing keys",
        estimated_start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        estimated_end_date=datetime(2026, 2, 1, tzinfo=timezone.utc),
        metrics=dict(PASSING_SECURITY_METRICS) if metrics is None else metrics,
    )


class SlowMetricsProvider(MetricsProvider):
    """Never answers within the test timeout."""

    async def fetch(self, milestone):
        await asyncio.sleep(5)
        return {"responseTime": 10_000}


class BrokenMetricsProvider(MetricsProvider):
    """Fails every fetch, as if monitoring were down."""

    async def fetch(self, milestone):
        raise RuntimeError("monitoring unreachable")


class CancellingMetricsProvider(MetricsProvider):
    """Sets the cancel event the first time it is asked for metrics."""

    def __init__(self, event: asyncio.Event):
        self.event = event
        self.calls = 0

    async def fetch(self, milestone):
        self.calls += 1
        self.event.set()
        return {}


@pytest.fixture(scope="module")
def catalog():
    return load_rule_catalog()


@pytest.fixture
def store():
    return InMemoryMilestoneStore(
        [
            _make_milestone("ms-1"),
            _make_milestone("ms-2", metrics={**PASSING_SECURITY_METRICS, "gate.security_scan": 40}),
            _make_milestone("ms-3"),
        ]
    )


class TestValidateMilestone:
    @pytest.mark.asyncio
    async def test_validates_and_records_result(self, store, catalog):
        validator = MilestoneValidator(store, catalog)

        result = await validator.validate_milestone("ms-1")

        assert result.overall_score == 100.0
        assert result.is_validated is True
        assert len(result.gate_results) == 3
        assert len(result.criteria_results) == 3
        assert len(result.threshold_results) == 3
        assert await store.latest_validation("ms-1") == result

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, store, catalog):
        validator = MilestoneValidator(store, catalog)

        with pytest.raises(MilestoneNotFoundError, match="nope"):
            await validator.validate_milestone("nope")

    @pytest.mark.asyncio
    async def test_stream_without_rules_raises(self, store):
        validator = MilestoneValidator(store, RuleCatalog({}))

        with pytest.raises(NoRuleSetError, match="security_remediation"):
            await validator.validate_milestone("ms-1")

    @pytest.mark.asyncio
    async def test_revalidation_is_identical_except_timestamp(self, store, catalog):
        validator = MilestoneValidator(store, catalog)

        first = await validator.validate_milestone("ms-2")
        second = await validator.validate_milestone("ms-2")

        assert first.model_dump(exclude={"timestamp"}) == second.model_dump(exclude={"timestamp"})

    @pytest.mark.asyncio
    async def test_live_metrics_take_precedence(self, store, catalog):
        provider = StaticMetricsProvider({"ms-1": {"cpuUsage": 99}})
        validator = MilestoneValidator(store, catalog, metrics_provider=provider)

        result = await validator.validate_milestone("ms-1")

        cpu = next(t for t in result.threshold_results if t.name == "cpuUsage")
        assert cpu.status == RuleStatus.FAILED
        assert cpu.details["source"] == "live"

    @pytest.mark.asyncio
    async def test_slow_metrics_fall_back_to_stored(self, store, catalog):
        config = MilestoneGuardConfig(batch=BatchConfig(metrics_timeout=0.05))
        validator = MilestoneValidator(
            store, catalog, config=config, metrics_provider=SlowMetricsProvider()
        )

        result = await asyncio.wait_for(validator.validate_milestone("ms-1"), timeout=2)

        assert result.is_validated is True
        assert all(t.details["source"] == "stored" for t in result.threshold_results)

    @pytest.mark.asyncio
    async def test_unreachable_metrics_without_stored_values_fail_thresholds(self, catalog):
        gates_and_criteria = {
            k: v for k, v in PASSING_SECURITY_METRICS.items() if k.startswith(("gate.", "criterion."))
        }
        store = InMemoryMilestoneStore([_make_milestone("ms-1", metrics=gates_and_criteria)])
        validator = MilestoneValidator(store, catalog, metrics_provider=BrokenMetricsProvider())

        result = await validator.validate_milestone("ms-1")

        assert all(t.status == RuleStatus.FAILED for t in result.threshold_results)
        assert all(t.details["source"] == "default" for t in result.threshold_results)
        # gates and criteria alone reach the 80 floor
        assert result.overall_score == 80.0


class TestValidateMultipleMilestones:
    @pytest.mark.asyncio
    async def test_unknown_id_does_not_affect_others(self, store, catalog):
        validator = MilestoneValidator(store, catalog)

        report = await validator.validate_multiple_milestones(["ms-1", "missing", "ms-2"])

        assert report.requested == 3
        assert [r.milestone_id for r in report.results] == ["ms-1", "ms-2"]
        assert len(report.errors) == 1
        assert report.errors[0].milestone_id == "missing"
        assert report.errors[0].error_type == "MilestoneNotFoundError"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_isolated(self, store, catalog):
        validator = MilestoneValidator(store, catalog)
        original = store.get

        async def flaky_get(milestone_id):
            if milestone_id == "ms-2":
                raise RuntimeError("disk on fire")
            return await original(milestone_id)

        store.get = flaky_get

        report = await validator.validate_multiple_milestones(["ms-1", "ms-2", "ms-3"], concurrency=2)

        assert sorted(r.milestone_id for r in report.results) == ["ms-1", "ms-3"]
        assert report.errors[0].error_type == "RuntimeError"
        assert "disk on fire" in report.errors[0].message

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, store, catalog):
        in_flight = 0
        peak = 0

        class CountingProvider(MetricsProvider):
            async def fetch(self, milestone):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return {}

        for i in range(4, 12):
            await store.save(_make_milestone(f"ms-{i}"))
        validator = MilestoneValidator(store, catalog, metrics_provider=CountingProvider())

        report = await validator.validate_multiple_milestones(
            [f"ms-{i}" for i in range(1, 12)], concurrency=3
        )

        assert len(report.results) == 11
        assert peak <= 3

    @pytest.mark.asyncio
    async def test_cancel_before_start_skips_everything(self, store, catalog):
        validator = MilestoneValidator(store, catalog)
        cancel = asyncio.Event()
        cancel.set()

        report = await validator.validate_multiple_milestones(["ms-1", "ms-2"], cancel_event=cancel)

        assert report.results == []
        assert [e.error_type for e in report.errors] == ["skipped", "skipped"]

    @pytest.mark.asyncio
    async def test_cancel_stops_scheduling_but_finishes_started(self, store, catalog):
        cancel = asyncio.Event()
        provider = CancellingMetricsProvider(cancel)
        validator = MilestoneValidator(store, catalog, metrics_provider=provider)

        report = await validator.validate_multiple_milestones(
            ["ms-1", "ms-2", "ms-3"], concurrency=1, cancel_event=cancel
        )

        assert provider.calls == 1
        assert [r.milestone_id for r in report.results] == ["ms-1"]
        assert [e.milestone_id for e in report.errors] == ["ms-2", "ms-3"]
        assert all(e.error_type == "skipped" for e in report.errors)

    @pytest.mark.asyncio
    async def test_empty_batch(self, store, catalog):
        report = await MilestoneValidator(store, catalog).validate_multiple_milestones([])

        assert report.requested == 0
        assert report.results == []
        assert report.errors == []

    @pytest.mark.asyncio
    async def test_invalid_concurrency_rejected(self, store, catalog):
        with pytest.raises(ValueError):
            await MilestoneValidator(store, catalog).validate_multiple_milestones(["ms-1"], concurrency=-1)
