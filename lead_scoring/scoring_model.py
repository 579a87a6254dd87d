"""
Lead Scoring Model for the Reobote lead agent.

Additive, rule-based engagement score on a 1-10 scale computed when a
guided conversation terminates.
"""

import math
import logging
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, replace

from .models import CreditType, Turn, lead_texts
from .fact_extractor import CollectedFacts

logger = logging.getLogger(__name__)


class LeadPriority(Enum):
    """Lead priority tiers."""
    HIGH = "high"        # Score >= 8 - Immediate follow-up
    MEDIUM = "medium"    # Score 5-7.9 - Standard follow-up
    LOW = "low"          # Score < 5 - Nurture

    @property
    def label(self) -> str:
        """Portuguese label used in the handoff message."""
        return _PRIORITY_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "LeadPriority":
        for priority, text in _PRIORITY_LABELS.items():
            if text == label.upper():
                return priority
        raise ValueError(f"Unknown priority label: {label}")


_PRIORITY_LABELS = {
    LeadPriority.HIGH: "ALTA",
    LeadPriority.MEDIUM: "MÉDIA",
    LeadPriority.LOW: "BAIXA",
}


MIN_SCORE = 1.0
MAX_SCORE = 10.0


def round_score(value: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def clamp_score(value: float) -> float:
    return min(max(round_score(value), MIN_SCORE), MAX_SCORE)


@dataclass
class Classification:
    """Score and priority tier of a lead."""
    score: float  # 1-10
    priority: LeadPriority
    score_breakdown: Dict[str, float] = field(default_factory=dict)

    def penalized(self, penalty: float = 5.0) -> "Classification":
        """Classification of a lead that ended the conversation without interest."""
        return replace(
            self,
            score=max(MIN_SCORE, round_score(self.score - penalty)),
            priority=LeadPriority.LOW,
            score_breakdown={**self.score_breakdown, "no_interest": -penalty},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "priority": self.priority.value,
        }


class EngagementScorer:
    """
    Scores leads from category, engagement and collected facts.

    Scoring Rules (base 5, clamped to 1-10):
    - Category: IMÓVEL +2, AUTO +1.5, NEGÓCIO +1
    - Turns: 6+ +1.5, 4+ +1, 2+ +0.5
    - Estimated value: 100k+ +2, 50k+ +1.5, 20k+ +1
    - Timeline: urgent +1.5, within the month +1
    - Lead wording: strong intent +1, comparison shopping -0.5

    Thresholds:
    - Score >= 8: High
    - Score >= 5: Medium
    - Score < 5: Low
    """

    CATEGORY_BONUS = {
        CreditType.IMOVEL: 2.0,
        CreditType.AUTO: 1.5,
        CreditType.NEGOCIO: 1.0,
        CreditType.EDUCACAO: 0.0,
    }

    # Scoring weights
    SCORING_RULES = {
        "base": 5.0,

        # Engagement scores
        "turns_6": 1.5,
        "turns_4": 1.0,
        "turns_2": 0.5,

        # Value scores
        "value_100k": 2.0,
        "value_50k": 1.5,
        "value_20k": 1.0,

        # Timeline scores
        "timeline_urgent": 1.5,
        "timeline_soon": 1.0,

        # Sentiment scores
        "strong_intent": 1.0,
        "comparison_shopping": -0.5,
    }

    URGENT_TIMELINE_WORDS = ("urgente", "já", "agora")
    SOON_TIMELINE_WORDS = ("mês", "breve")
    STRONG_INTENT_WORDS = ("quero", "preciso", "urgente")
    COMPARISON_WORDS = ("comparando", "pesquisando")

    # Priority thresholds
    HIGH_THRESHOLD = 8.0
    MEDIUM_THRESHOLD = 5.0

    def __init__(self, custom_rules: Optional[Dict[str, float]] = None):
        """
        Initialize the engagement scorer.

        Args:
            custom_rules: Optional custom scoring rules to override defaults
        """
        self.rules = self.SCORING_RULES.copy()
        if custom_rules:
            self.rules.update(custom_rules)

    def score(
        self,
        credit_type: CreditType,
        turns: List[Turn],
        facts: CollectedFacts,
    ) -> Classification:
        """
        Calculate the lead classification.

        Args:
            credit_type: Category chosen on the intake form
            turns: Full ordered turn history
            facts: Facts collected during the conversation

        Returns:
            Classification with score, priority and breakdown
        """
        breakdown: Dict[str, float] = {"base": self.rules["base"]}

        category_bonus = self.CATEGORY_BONUS.get(credit_type, 0.0)
        if category_bonus:
            breakdown[f"category_{credit_type.name.lower()}"] = category_bonus

        volume_key = self._turn_volume_key(len(turns))
        if volume_key:
            breakdown[volume_key] = self.rules[volume_key]

        value_key = self._value_key(facts.estimated_value)
        if value_key:
            breakdown[value_key] = self.rules[value_key]

        timeline_key = self._timeline_key(facts.timeline)
        if timeline_key:
            breakdown[timeline_key] = self.rules[timeline_key]

        breakdown.update(self._score_sentiment(lead_texts(turns)))

        score = clamp_score(sum(breakdown.values()))
        return Classification(
            score=score,
            priority=self.priority_for(score),
            score_breakdown=breakdown,
        )

    def priority_for(self, score: float) -> LeadPriority:
        """Map a score to its priority tier (boundaries belong to the higher tier)."""
        if score >= self.HIGH_THRESHOLD:
            return LeadPriority.HIGH
        if score >= self.MEDIUM_THRESHOLD:
            return LeadPriority.MEDIUM
        return LeadPriority.LOW

    def _turn_volume_key(self, turn_count: int) -> Optional[str]:
        if turn_count >= 6:
            return "turns_6"
        if turn_count >= 4:
            return "turns_4"
        if turn_count >= 2:
            return "turns_2"
        return None

    def _value_key(self, value: Optional[int]) -> Optional[str]:
        if not value:
            return None
        if value >= 100_000:
            return "value_100k"
        if value >= 50_000:
            return "value_50k"
        if value >= 20_000:
            return "value_20k"
        return None

    def _timeline_key(self, timeline: Optional[str]) -> Optional[str]:
        if not timeline:
            return None
        timeline = timeline.lower()
        if any(word in timeline for word in self.URGENT_TIMELINE_WORDS):
            return "timeline_urgent"
        if any(word in timeline for word in self.SOON_TIMELINE_WORDS):
            return "timeline_soon"
        return None

    def _score_sentiment(self, texts: List[str]) -> Dict[str, float]:
        scores: Dict[str, float] = {}
        text = " ".join(t.lower() for t in texts)

        if any(word in text for word in self.STRONG_INTENT_WORDS):
            scores["strong_intent"] = self.rules["strong_intent"]

        if any(word in text for word in self.COMPARISON_WORDS):
            scores["comparison_shopping"] = self.rules["comparison_shopping"]

        return scores

    def adjust_thresholds(self, high: float = 8.0, medium: float = 5.0):
        """
        Adjust priority thresholds.

        Args:
            high: Threshold for high priority (default 8)
            medium: Threshold for medium priority (default 5)
        """
        self.HIGH_THRESHOLD = high
        self.MEDIUM_THRESHOLD = medium
