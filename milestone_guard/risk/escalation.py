# milestone_guard/risk/escalation.py
"""
EscalationEngine: turns a risk assessment into escalation requests.

Every assessment yields one event from the escalation matrix (recipients
grow with the level). Ad-hoc triggers may add further events. Events are
returned to the caller; nothing is dispatched here.
"""

import logging
from datetime import datetime
from typing import Callable

from milestone_guard.errors import ConfigurationError
from milestone_guard.models.milestone import Milestone, MilestoneStatus, RiskLevel
from milestone_guard.models.results import EscalationEvent, RiskAssessment
from milestone_guard.rules.policy import EscalationTrigger, RiskPolicy, TriggerPolicy

logger = logging.getLogger(__name__)

TriggerCondition = Callable[[Milestone, RiskAssessment, TriggerPolicy], bool]


def _high_risk_score(milestone: Milestone, assessment: RiskAssessment, policy: TriggerPolicy) -> bool:
    limit = policy.risk_score_above if policy.risk_score_above is not None else 10.0
    return assessment.risk_score > limit


def _blocked_and_critical(
    milestone: Milestone, assessment: RiskAssessment, policy: TriggerPolicy
) -> bool:
    return milestone.status == MilestoneStatus.BLOCKED and assessment.level == RiskLevel.CRITICAL


def _critical_impact(milestone: Milestone, assessment: RiskAssessment, policy: TriggerPolicy) -> bool:
    return any(r.impact == RiskLevel.CRITICAL for r in assessment.identified_risks)


TRIGGER_CONDITIONS: dict[EscalationTrigger, TriggerCondition] = {
    EscalationTrigger.IMMEDIATE_MANAGEMENT_REVIEW: _high_risk_score,
    EscalationTrigger.EMERGENCY_RESPONSE_TEAM: _blocked_and_critical,
    EscalationTrigger.EXECUTIVE_ESCALATION: _critical_impact,
}


class EscalationEngine:
    """Matches an assessment against the escalation matrix and triggers."""

    def __init__(self, policy: RiskPolicy):
        missing = [t.value for t in EscalationTrigger if t not in TRIGGER_CONDITIONS]
        if missing:
            raise ConfigurationError(f"No condition registered for triggers: {', '.join(missing)}")
        self.policy = policy

    def matrix_event(
        self, milestone: Milestone, assessment: RiskAssessment, now: datetime
    ) -> EscalationEvent:
        level = assessment.level
        return EscalationEvent(
            milestone_id=milestone.id,
            kind="risk_level",
            reason=f"Risk level {level.value} requires escalation",
            risk_level=level,
            required_levels=list(self.policy.recipients_for(level)),
            created_at=now,
        )

    def check(
        self, milestone: Milestone, assessment: RiskAssessment, now: datetime
    ) -> list[EscalationEvent]:
        """
        Collect escalation events for one assessed milestone.

        Args:
            milestone: Assessed milestone (its status feeds the triggers)
            assessment: Final assessment, after time rules
            now: Event timestamp

        Returns:
            The matrix event followed by one event per trigger that fired
        """
        events = [self.matrix_event(milestone, assessment, now)]

        for trigger, condition in TRIGGER_CONDITIONS.items():
            trigger_policy = self.policy.trigger(trigger)
            if not condition(milestone, assessment, trigger_policy):
                continue
            events.append(
                EscalationEvent(
                    milestone_id=milestone.id,
                    kind=trigger.value,
                    reason=trigger_policy.reason,
                    risk_level=assessment.level,
                    required_levels=list(trigger_policy.required_levels),
                    created_at=now,
                )
            )

        if len(events) > 1:
            logger.warning(
                f"Milestone {milestone.id}: escalation triggers fired: "
                f"{', '.join(e.kind for e in events[1:])}"
            )
        return events
