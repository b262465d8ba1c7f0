# milestone_guard/risk/lifecycle.py
"""
Risk factor log maintenance and time-based level adjustment.

The RiskFactor log is the only state carried between assessment runs.
Each run appends newly identified risks to it, then adjusts the scored
level:

    only mitigated factors on record    -> low
    an active factor older than N days  -> one tier above the scored level
    otherwise                           -> the scored level
"""

import logging
from datetime import datetime, timedelta
from typing import Mapping, Sequence

from milestone_guard.models.milestone import Milestone, RiskFactor, RiskLevel
from milestone_guard.models.results import IdentifiedRisk

logger = logging.getLogger(__name__)


def record_risk_factors(
    milestone: Milestone,
    risks: Sequence[IdentifiedRisk],
    now: datetime,
    mitigations: Mapping[str, str] | None = None,
) -> list[RiskFactor]:
    """
    Append identified risks that are not yet on the milestone's log.

    A risk is identified by (category, factor). Entries are never removed
    or rewritten, so a factor already recorded as mitigated is not added
    again.

    Args:
        milestone: Milestone whose log is extended in place
        risks: Risks identified by the current assessment
        now: Timestamp for new entries
        mitigations: Optional mitigation text per factor name

    Returns:
        The newly appended factors
    """
    mitigations = mitigations or {}
    known = {factor.key() for factor in milestone.risk_factors}
    added = []

    for risk in risks:
        key = (risk.category.value, risk.factor)
        if key in known:
            continue
        factor = RiskFactor(
            category=risk.category,
            factor=risk.factor,
            level=risk.level,
            description=risk.description,
            mitigation=mitigations.get(risk.factor, ""),
            created_at=now,
        )
        milestone.risk_factors.append(factor)
        known.add(key)
        added.append(factor)

    if added:
        logger.info(
            f"Milestone {milestone.id}: recorded {len(added)} new risk factors "
            f"({', '.join(f.factor or '?' for f in added)})"
        )
    return added


def stale_factors(milestone: Milestone, now: datetime, stale_after_days: float) -> list[RiskFactor]:
    """Active factors left unmitigated for longer than ``stale_after_days``."""
    cutoff = timedelta(days=stale_after_days)
    return [f for f in milestone.active_risk_factors if now - f.created_at > cutoff]


def apply_time_rules(
    milestone: Milestone,
    derived_level: RiskLevel,
    now: datetime,
    stale_after_days: float = 7.0,
) -> RiskLevel:
    """
    Adjust a scored level using the milestone's risk factor history.

    Args:
        milestone: Milestone with its up-to-date RiskFactor log
        derived_level: Level from scoring alone
        now: Current time
        stale_after_days: Age after which an active factor escalates the level

    Returns:
        Final risk level for the milestone
    """
    if milestone.risk_factors and not milestone.active_risk_factors:
        if derived_level != RiskLevel.LOW:
            logger.info(f"Milestone {milestone.id}: all risk factors mitigated, level decays to low")
        return RiskLevel.LOW

    stale = stale_factors(milestone, now, stale_after_days)
    if stale:
        escalated = derived_level.escalate()
        logger.info(
            f"Milestone {milestone.id}: {len(stale)} risk factors unmitigated for more than "
            f"{stale_after_days:g} days, escalating {derived_level.value} -> {escalated.value}"
        )
        return escalated

    return derived_level
