# milestone_guard/validation/validator.py
"""
MilestoneValidator: validates milestones against their stream's RuleSet.

Single-milestone validation surfaces NotFound/NoRuleSet to the caller.
Batch validation runs a bounded worker pool and isolates per-item
failures: it always returns whatever results it could produce plus one
error entry per failed or skipped milestone.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping

from milestone_guard.config.schema import MilestoneGuardConfig
from milestone_guard.errors import MilestoneGuardError, MilestoneNotFoundError
from milestone_guard.metrics.fetch import fetch_live_metrics
from milestone_guard.metrics.provider import MetricsProvider
from milestone_guard.models.milestone import Milestone
from milestone_guard.models.results import (
    BatchItemError,
    BatchValidationReport,
    ValidationResult,
)
from milestone_guard.models.store import MilestoneStore
from milestone_guard.rules.catalog import RuleCatalog, RuleSet
from milestone_guard.validation.evaluators import (
    PerformanceThresholdEvaluator,
    QualityGateEvaluator,
    RuleCheck,
    SuccessCriteriaEvaluator,
)
from milestone_guard.validation.scorer import ValidationScorer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MilestoneValidator:
    """
    Drives the three evaluators and the scorer for milestones in a store.

    Collaborators are injected so tests can substitute fakes.
    """

    def __init__(
        self,
        store: MilestoneStore,
        catalog: RuleCatalog,
        config: MilestoneGuardConfig | None = None,
        metrics_provider: MetricsProvider | None = None,
        gate_checks: Mapping[str, RuleCheck] | None = None,
        criterion_checks: Mapping[str, RuleCheck] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._config = config or MilestoneGuardConfig()
        self._metrics_provider = metrics_provider
        self._clock = clock

        self._gates = QualityGateEvaluator(
            pass_score=self._config.validation.gate_pass_score, checks=gate_checks
        )
        self._criteria = SuccessCriteriaEvaluator(catalog, checks=criterion_checks)
        self._thresholds = PerformanceThresholdEvaluator(catalog)
        self._scorer = ValidationScorer(self._config.validation)

    @property
    def scorer(self) -> ValidationScorer:
        return self._scorer

    def evaluate(
        self,
        milestone: Milestone,
        rule_set: RuleSet,
        live_metrics: Mapping[str, float],
        timestamp: datetime | None = None,
    ) -> ValidationResult:
        """
        Evaluate a milestone snapshot against a RuleSet. Pure: no I/O.

        Args:
            milestone: Milestone snapshot
            rule_set: Rules for the milestone's stream type
            live_metrics: Current metric values (override stored metrics)
            timestamp: Result timestamp (defaults to now)
        """
        gate_results = [
            self._gates.evaluate(gate, milestone, live_metrics) for gate in rule_set.quality_gates
        ]
        criteria_results = [
            self._criteria.evaluate(criterion, milestone, live_metrics)
            for criterion in rule_set.success_criteria
        ]
        threshold_results = [
            self._thresholds.evaluate(rule.metric, rule.threshold, milestone, live_metrics)
            for rule in rule_set.performance_thresholds
        ]
        return self._scorer.score(
            milestone,
            gate_results,
            criteria_results,
            threshold_results,
            timestamp or self._clock(),
        )

    async def validate_milestone(self, milestone_id: str) -> ValidationResult:
        """
        Validate a stored milestone and record the result.

        Raises:
            MilestoneNotFoundError: If the id is unknown
            NoRuleSetError: If the stream type has no RuleSet
        """
        milestone = await self._store.get(milestone_id)
        if milestone is None:
            raise MilestoneNotFoundError(milestone_id)

        rule_set = self._catalog.get(milestone.stream_type)

        live_metrics = await fetch_live_metrics(
            self._metrics_provider, milestone, self._config.batch.metrics_timeout
        )

        result = self.evaluate(milestone, rule_set, live_metrics)
        await self._store.save_validation(result)
        return result

    async def validate_multiple_milestones(
        self,
        milestone_ids: list[str],
        concurrency: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchValidationReport:
        """
        Validate many milestones with a bounded worker pool.

        One milestone's failure never affects the others. Setting
        ``cancel_event`` stops workers from picking up further milestones;
        validations already started run to completion. Nothing is retried.

        Args:
            milestone_ids: Milestones to validate
            concurrency: Worker count (defaults to config.batch.concurrency)
            cancel_event: Optional event that stops further scheduling

        Returns:
            BatchValidationReport with results in request order and one
            error entry per failed or skipped milestone
        """
        concurrency = concurrency or self._config.batch.concurrency
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        outcomes: list[ValidationResult | BatchItemError | None] = [None] * len(milestone_ids)
        queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        for item in enumerate(milestone_ids):
            queue.put_nowait(item)

        async def worker() -> None:
            while True:
                try:
                    index, milestone_id = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                if cancel_event is not None and cancel_event.is_set():
                    outcomes[index] = BatchItemError(
                        milestone_id=milestone_id,
                        error_type="skipped",
                        message="Batch cancelled before this milestone was started",
                    )
                    continue

                try:
                    outcomes[index] = await self.validate_milestone(milestone_id)
                except MilestoneGuardError as e:
                    logger.warning(f"Batch validation of milestone {milestone_id} failed: {e}")
                    outcomes[index] = BatchItemError(
                        milestone_id=milestone_id, error_type=type(e).__name__, message=str(e)
                    )
                except Exception as e:
                    logger.exception(f"Unexpected error validating milestone {milestone_id}")
                    outcomes[index] = BatchItemError(
                        milestone_id=milestone_id, error_type=type(e).__name__, message=str(e)
                    )

        workers = min(concurrency, len(milestone_ids))
        await asyncio.gather(*(worker() for _ in range(workers)))

        report = BatchValidationReport(requested=len(milestone_ids))
        for outcome in outcomes:
            if isinstance(outcome, ValidationResult):
                report.results.append(outcome)
            elif isinstance(outcome, BatchItemError):
                report.errors.append(outcome)

        logger.info(
            f"Batch validation finished: {len(report.results)} validated, "
            f"{len(report.errors)} failed or skipped (of {report.requested})"
        )
        return report
