"""Tests for the Engagement Scorer."""

import pytest
from lead_scoring.fact_extractor import CollectedFacts
from lead_scoring.models import CreditType, Turn, TurnRole
from lead_scoring.scoring_model import (
    EngagementScorer, Classification, LeadPriority, round_score,
)


@pytest.fixture
def scorer():
    return EngagementScorer()


# ── Engagement Scorer ─────────────────────────────────

class TestEngagementScorer:
    def test_hot_lead_is_clamped_to_ten(self, scorer, make_conversation):
        turns = make_conversation(
            "Oi!", "Quero muito", "Qual valor?", "R$ 150.000", "E o prazo?", "urgente",
        )
        facts = CollectedFacts(estimated_value=150000, timeline="urgente")
        result = scorer.score(CreditType.IMOVEL, turns, facts)
        assert result.score == 10.0
        assert result.priority == LeadPriority.HIGH

    def test_comparison_shopping_lowers_score(self, scorer):
        turns = [Turn(role=TurnRole.LEAD, content="só pesquisando")]
        result = scorer.score(CreditType.EDUCACAO, turns, CollectedFacts())
        assert result.score == 4.5
        assert result.priority == LeadPriority.LOW

    def test_category_and_volume(self, scorer, make_conversation):
        turns = make_conversation("Oi!", "Olá")
        result = scorer.score(CreditType.NEGOCIO, turns, CollectedFacts())
        assert result.score == 6.5
        assert result.priority == LeadPriority.MEDIUM
        assert result.score_breakdown["category_negocio"] == 1.0
        assert result.score_breakdown["turns_2"] == 0.5

    def test_high_boundary_belongs_to_high(self, scorer, make_conversation):
        turns = make_conversation("Oi!", "Olá", "Tudo certo?", "Certo")
        result = scorer.score(CreditType.NEGOCIO, turns, CollectedFacts(estimated_value=20000))
        assert result.score == 8.0
        assert result.priority == LeadPriority.HIGH

    def test_medium_boundary_belongs_to_medium(self, scorer):
        result = scorer.score(CreditType.EDUCACAO, [], CollectedFacts())
        assert result.score == 5.0
        assert result.priority == LeadPriority.MEDIUM

    def test_timeline_within_month(self, scorer):
        result = scorer.score(CreditType.EDUCACAO, [], CollectedFacts(timeline="próximo mês"))
        assert result.score_breakdown["timeline_soon"] == 1.0
        assert result.score == 6.0

    def test_custom_rules(self, make_conversation):
        scorer = EngagementScorer(custom_rules={"base": 3.0})
        result = scorer.score(CreditType.EDUCACAO, make_conversation("Oi"), CollectedFacts())
        assert result.score == 3.0
        assert result.priority == LeadPriority.LOW

    def test_adjust_thresholds(self, scorer):
        scorer.adjust_thresholds(high=9.0, medium=6.0)
        assert scorer.priority_for(8.5) == LeadPriority.MEDIUM
        assert scorer.priority_for(5.5) == LeadPriority.LOW


# ── Classification ────────────────────────────────────

class TestClassification:
    def test_penalty_for_no_interest(self):
        result = Classification(score=8.5, priority=LeadPriority.HIGH).penalized()
        assert result.score == 3.5
        assert result.priority == LeadPriority.LOW

    def test_penalty_never_below_minimum(self):
        result = Classification(score=5.5, priority=LeadPriority.MEDIUM).penalized()
        assert result.score == 1.0

    def test_to_dict(self):
        data = Classification(score=7.5, priority=LeadPriority.MEDIUM).to_dict()
        assert data == {"score": 7.5, "priority": "medium"}

    def test_round_half_up(self):
        assert round_score(6.25) == 6.3
        assert round_score(6.24) == 6.2

    def test_priority_labels(self):
        assert LeadPriority.HIGH.label == "ALTA"
        assert LeadPriority.from_label("média") == LeadPriority.MEDIUM
        with pytest.raises(ValueError):
            LeadPriority.from_label("urgente")


# ── Properties ────────────────────────────────────────

class TestScoringProperties:
    @pytest.mark.parametrize("credit_type,bonus", [
        (CreditType.IMOVEL, 2.0),
        (CreditType.AUTO, 1.5),
        (CreditType.NEGOCIO, 1.0),
        (CreditType.EDUCACAO, 0.0),
    ])
    def test_category_bonus_table(self, scorer, credit_type, bonus):
        assert scorer.score(credit_type, [], CollectedFacts()).score == 5.0 + bonus

    def test_score_is_always_clamped(self, scorer, make_conversation):
        cold = [Turn(role=TurnRole.LEAD, content="comparando")]
        hot = make_conversation(*["quero urgente"] * 8)
        for credit_type in CreditType:
            for turns, facts in [
                (cold, CollectedFacts()),
                (hot, CollectedFacts(estimated_value=500000, timeline="já")),
            ]:
                result = scorer.score(credit_type, turns, facts)
                assert 1.0 <= result.score <= 10.0
                assert 1.0 <= result.penalized().score <= 10.0

    def test_high_value_never_lowers_score(self, scorer, make_conversation):
        turns = make_conversation("Oi!", "Estou vendo opções")
        without = scorer.score(CreditType.AUTO, turns, CollectedFacts())
        with_value = scorer.score(CreditType.AUTO, turns, CollectedFacts(estimated_value=150000))
        assert with_value.score >= without.score
