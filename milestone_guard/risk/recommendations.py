# milestone_guard/risk/recommendations.py
"""Risk recommendations for single milestones and for a whole portfolio."""

from collections import Counter
from typing import Mapping

from milestone_guard.models.milestone import RiskLevel
from milestone_guard.models.results import CategoryBreakdown, Recommendation, RiskAssessment
from milestone_guard.rules.policy import RiskPolicy


def milestone_recommendations(
    assessment: RiskAssessment, policy: RiskPolicy
) -> list[Recommendation]:
    """Level recommendation (if the policy has one) plus one per risk category."""
    recommendations = []

    template = policy.level_recommendations.get(assessment.level)
    if template is not None:
        recommendations.append(
            Recommendation(
                type=template.type,
                priority=assessment.level,
                title=template.title,
                actions=list(template.actions),
                timeline=template.timeline,
                milestone_id=assessment.milestone_id,
            )
        )

    per_category = Counter(r.category for r in assessment.identified_risks)
    for category, count in per_category.items():
        recommendations.append(
            Recommendation(
                type="category_specific",
                priority=RiskLevel.MEDIUM,
                title=f"Address {category.value} risks",
                description=f"{count} {category.value} risks identified",
                milestone_id=assessment.milestone_id,
            )
        )

    return recommendations


def portfolio_recommendations(
    risk_summary: Mapping[str, int],
    category_breakdown: Mapping[str, CategoryBreakdown],
) -> list[Recommendation]:
    """Recommendations for the portfolio as a whole."""
    recommendations = []

    critical_count = risk_summary.get(RiskLevel.CRITICAL.value, 0)
    high_count = risk_summary.get(RiskLevel.HIGH.value, 0)

    if critical_count > 0:
        recommendations.append(
            Recommendation(
                type="portfolio_level",
                priority=RiskLevel.CRITICAL,
                title="Address Critical Risks Immediately",
                description=f"{critical_count} critical risks require immediate attention",
                actions=[
                    "Convene emergency risk management session",
                    "Reallocate resources to critical risks",
                    "Consider milestone timeline adjustments",
                    "Implement emergency monitoring protocols",
                ],
            )
        )

    if high_count > 2:
        recommendations.append(
            Recommendation(
                type="resource_reallocation",
                priority=RiskLevel.HIGH,
                title="Consider Resource Reallocation",
                description=f"{high_count} high-risk milestones may require additional resources",
                actions=[
                    "Assess overall team capacity",
                    "Consider external resource augmentation",
                    "Review milestone priorities",
                    "Implement parallel work streams where possible",
                ],
            )
        )

    if category_breakdown:
        # Ties resolve to the first category encountered
        top = max(category_breakdown, key=lambda c: category_breakdown[c].total)
        recommendations.append(
            Recommendation(
                type="category_focus",
                priority=RiskLevel.MEDIUM,
                title=f"Focus on {top} Risk Management",
                description=f"{top} risks represent the highest category concentration",
                actions=[
                    f"Develop {top} risk management framework",
                    "Provide specialized training if needed",
                    "Establish category-specific monitoring",
                    "Create category risk response procedures",
                ],
            )
        )

    return recommendations
