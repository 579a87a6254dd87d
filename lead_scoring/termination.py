"""
Conversation Termination Detection for the Reobote lead agent.

Decides after every agent reply whether the guided conversation should end
and whether the lead is still interested. The decision is an ordered table
of rules; the first rule whose predicate holds decides the outcome.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .models import Turn, lead_texts
from .fact_extractor import CollectedFacts

logger = logging.getLogger(__name__)


NO_INTEREST_PHRASES = (
    "não tenho interesse", "não estou interessado", "não quero", "não preciso",
    "sem interesse", "desinteressado", "não é pra mim", "não é para mim",
    "não vou querer", "não vou precisar", "mudei de ideia", "desisti",
    "não agora", "talvez depois", "outro momento", "não no momento",
)

FAREWELL_PHRASES = ("tchau", "adeus", "até mais", "até logo", "falou", "flw", "vlw")

CLOSING_PHRASES = (
    "ok", "tudo bem", "pode ser", "vamos", "quero falar",
    "atendente", "humano", "whatsapp", "obrigado", "valeu",
)

THANKS_PHRASES = ("obrigado", "valeu")


@dataclass(frozen=True)
class TerminationSignals:
    """Signals read once from the conversation and shared by every rule."""
    turn_count: int
    facts_count: int
    has_no_interest: bool
    is_farewell: bool
    closing_phrase: Optional[str]
    is_thanks: bool

    @classmethod
    def from_conversation(
        cls,
        turns: List[Turn],
        facts: CollectedFacts,
    ) -> "TerminationSignals":
        texts = [t.lower() for t in lead_texts(turns)]
        last_text = texts[-1] if texts else ""
        all_text = " ".join(texts)

        return cls(
            turn_count=len(turns),
            facts_count=facts.filled_count(),
            has_no_interest=any(p in all_text for p in NO_INTEREST_PHRASES),
            is_farewell=any(p in last_text for p in FAREWELL_PHRASES),
            closing_phrase=next((p for p in CLOSING_PHRASES if p in last_text), None),
            is_thanks=any(p in last_text for p in THANKS_PHRASES),
        )


@dataclass(frozen=True)
class TerminationDecision:
    """Outcome of termination detection."""
    should_end: bool
    has_interest: bool
    reason: str = "continue"


@dataclass(frozen=True)
class TerminationRule:
    """One row of the termination table."""
    name: str
    applies: Callable[[TerminationSignals], bool]
    has_interest: Callable[[TerminationSignals], bool]

    def decide(self, signals: TerminationSignals) -> TerminationDecision:
        return TerminationDecision(
            should_end=True,
            has_interest=self.has_interest(signals),
            reason=self.name,
        )


# Order matters: an explicit no-interest signal overrides every volume or
# fact heuristic, and closing phrases are checked last.
DEFAULT_RULES: Sequence[TerminationRule] = (
    TerminationRule(
        name="no_interest",
        applies=lambda s: s.has_no_interest or (s.is_farewell and s.turn_count >= 2),
        has_interest=lambda s: False,
    ),
    TerminationRule(
        name="turn_limit",
        applies=lambda s: s.turn_count >= 8,
        has_interest=lambda s: True,
    ),
    TerminationRule(
        name="facts_collected",
        applies=lambda s: s.facts_count >= 2 and s.turn_count >= 4,
        has_interest=lambda s: True,
    ),
    TerminationRule(
        name="closing_phrase",
        applies=lambda s: s.closing_phrase is not None and s.turn_count >= 3,
        has_interest=lambda s: not (s.is_thanks and s.has_no_interest),
    ),
)

CONTINUE = TerminationDecision(should_end=False, has_interest=True)


class TerminationDetector:
    """
    Evaluates the termination table against a conversation.

    Rules (first match wins):
    1. No-interest phrase anywhere, or farewell in the last lead turn
       with 2+ turns: end without interest
    2. 8+ turns: end with interest
    3. 2+ collected facts and 4+ turns: end with interest
    4. Closing phrase in the last lead turn with 3+ turns: end
    5. Otherwise continue
    """

    def __init__(self, rules: Optional[Sequence[TerminationRule]] = None):
        self.rules = tuple(rules or DEFAULT_RULES)

    def detect(self, turns: List[Turn], facts: CollectedFacts) -> TerminationDecision:
        """
        Decide whether the conversation should end.

        Args:
            turns: Full ordered turn history
            facts: Facts collected for the conversation so far

        Returns:
            TerminationDecision
        """
        signals = TerminationSignals.from_conversation(turns, facts)
        for rule in self.rules:
            if rule.applies(signals):
                logger.debug(f"Termination rule matched: {rule.name}")
                return rule.decide(signals)
        return CONTINUE
