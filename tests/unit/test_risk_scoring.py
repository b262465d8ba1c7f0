# tests/unit/test_risk_scoring.py
"""
Unit tests for RiskScorer and level derivation.
"""

import pytest

from milestone_guard.models.milestone import RiskCategory, RiskLevel
from milestone_guard.models.results import IdentifiedRisk
from milestone_guard.risk.scorer import RiskScorer, level_for_score

L, M, H, C = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL


def _risk(probability, impact, category=RiskCategory.TECHNICAL, factor="f") -> IdentifiedRisk:
    return IdentifiedRisk(
        category=category,
        factor=factor,
        description="test risk",
        probability=probability,
        impact=impact,
    )


class TestLevelForScore:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.0, L),
            (3.9, L),
            (4.0, M),
            (4.1, M),
            (7.9, M),
            (8.0, H),
            (8.1, H),
            (11.9, H),
            (12.0, C),
            (12.1, C),
            (16.0, C),
        ],
    )
    def test_thresholds(self, score, expected):
        assert level_for_score(score) == expected


class TestRiskScorer:
    def test_no_risks_is_low_with_zero_scores(self):
        score = RiskScorer().score([])

        assert score.level == L
        assert score.probability == 0
        assert score.impact == 0
        assert score.risk_score == 0

    def test_score_is_product_of_means(self):
        risks = [_risk(H, C), _risk(L, M), _risk(M, M)]

        score = RiskScorer().score(risks)

        assert score.probability == pytest.approx((3 + 1 + 2) / 3)
        assert score.impact == pytest.approx((4 + 2 + 2) / 3)
        assert score.risk_score == pytest.approx(score.probability * score.impact)
        assert score.risk_score == pytest.approx(2.0 * 8 / 3)
        assert score.level == M

    def test_single_high_critical_risk_is_critical(self):
        score = RiskScorer().score([_risk(H, C)])

        assert score.risk_score == 12
        assert score.level == C

    def test_rate_sets_own_level_and_priority(self):
        scorer = RiskScorer()

        rated = scorer.rate(_risk(M, H))

        assert rated.level == M  # 2 x 3 = 6
        assert rated.priority == 1

    @pytest.mark.parametrize("impact,priority", [(C, 0), (H, 1), (M, 2), (L, 3)])
    def test_priority_follows_impact(self, impact, priority):
        assert RiskScorer().rate(_risk(L, impact)).priority == priority


class TestRiskLevelEscalate:
    @pytest.mark.parametrize("level,expected", [(L, M), (M, H), (H, C), (C, C)])
    def test_escalates_one_tier_capped(self, level, expected):
        assert level.escalate() == expected

    def test_scale(self):
        assert [lv.scale for lv in RiskLevel] == [1, 2, 3, 4]
