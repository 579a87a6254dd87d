"""
Fact Extraction for the Reobote lead agent.

Extracts the qualification facts a lead states in their own words:
- Estimated credit value (R$ amounts, "50 mil", "quero 80.000")
- Purchase timeline ("urgente", "próximo mês", "sem pressa", ...)

Only lead-authored text is analysed; agent replies never contribute facts.
"""

import re
import logging
from typing import Callable, Dict, Any, List, Optional, Pattern, Sequence
from dataclasses import dataclass, fields, replace

from .models import Turn, lead_texts

logger = logging.getLogger(__name__)


@dataclass
class CollectedFacts:
    """Sparse record of facts collected during a conversation."""

    estimated_value: Optional[int] = None
    timeline: Optional[str] = None
    main_concern: Optional[str] = None

    def filled_count(self) -> int:
        """Number of non-empty fact fields."""
        return sum(1 for f in fields(self) if getattr(self, f.name))

    def merge(self, newer: "CollectedFacts") -> "CollectedFacts":
        """Overlay the non-empty fields of ``newer`` on top of this record."""
        updates = {
            f.name: getattr(newer, f.name)
            for f in fields(newer)
            if getattr(newer, f.name)
        }
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting empty fields."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name)
        }


def parse_numeral(raw: str) -> Optional[int]:
    """Parse a numeral after stripping its '.' and ',' separators."""
    digits = raw.replace(".", "").replace(",", "")
    if not digits.isdigit():
        return None
    return int(digits)


@dataclass(frozen=True)
class ValueRule:
    """A value pattern and the normalizer applied to its captured numeral."""
    name: str
    pattern: Pattern
    normalizer: Callable[[str], Optional[int]] = parse_numeral


class FactExtractor:
    """
    Extracts collected facts from lead messages.

    Value rules are tried in order; the first one yielding a plausible
    amount wins. Timeline phrases are matched in priority order and the
    first hit wins.
    """

    # Ordered value rules: explicit currency, unit word, intent verb
    VALUE_RULES: Sequence[ValueRule] = (
        ValueRule(
            name="currency",
            pattern=re.compile(r'r\$\s*([0-9.,]+)', re.IGNORECASE),
        ),
        ValueRule(
            name="unit",
            pattern=re.compile(r'([0-9]+)\s*(?:mil|k)\b', re.IGNORECASE),
        ),
        ValueRule(
            name="intent",
            pattern=re.compile(
                r'(?:valor|pensando em|quero|cerca de|aproximadamente)\s*(?:r\$)?\s*([0-9.,]+)',
                re.IGNORECASE,
            ),
        ),
    )

    # "mil"/"k" near a small numeral means thousands
    UNIT_PATTERN = re.compile(r'mil|k\b', re.IGNORECASE)
    UNIT_WINDOW_BEFORE = 5
    UNIT_WINDOW_AFTER = 10

    # Amounts below this are ages, counts, etc.
    MIN_VALUE = 1000

    # Timeline phrases, most urgent first
    TIMELINE_PHRASES = (
        "urgente", "já", "agora",
        "próximo mês", "esse ano", "ano que vem",
        "sem pressa", "planejando",
    )

    def __init__(
        self,
        value_rules: Optional[Sequence[ValueRule]] = None,
        timeline_phrases: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the fact extractor.

        Args:
            value_rules: Optional ordered value rules replacing the defaults
            timeline_phrases: Optional ordered timeline vocabulary
        """
        self.value_rules = tuple(value_rules or self.VALUE_RULES)
        self.timeline_phrases = tuple(timeline_phrases or self.TIMELINE_PHRASES)

    def extract(self, texts: List[str]) -> CollectedFacts:
        """
        Extract facts from lead-authored texts.

        Args:
            texts: Lead messages in conversation order

        Returns:
            CollectedFacts with the fields that could be extracted
        """
        text = " ".join(texts)
        facts = CollectedFacts(
            estimated_value=self._extract_value(text),
            timeline=self._extract_timeline(text),
        )
        logger.debug(f"Extracted facts: {facts.to_dict()}")
        return facts

    def extract_from_turns(self, turns: List[Turn]) -> CollectedFacts:
        """Extract facts from the lead turns of a conversation."""
        return self.extract(lead_texts(turns))

    def _extract_value(self, text: str) -> Optional[int]:
        for rule in self.value_rules:
            match = rule.pattern.search(text)
            if not match:
                continue

            value = rule.normalizer(match.group(1))
            if value is None:
                continue

            if value < self.MIN_VALUE and self._has_unit_nearby(text, match):
                value *= 1000

            if value >= self.MIN_VALUE:
                return value

        return None

    def _has_unit_nearby(self, text: str, match: re.Match) -> bool:
        start = max(0, match.start() - self.UNIT_WINDOW_BEFORE)
        end = match.start() + len(match.group(0)) + self.UNIT_WINDOW_AFTER
        return bool(self.UNIT_PATTERN.search(text[start:end]))

    def _extract_timeline(self, text: str) -> Optional[str]:
        text_lower = text.lower()
        for phrase in self.timeline_phrases:
            if phrase in text_lower:
                return phrase
        return None
