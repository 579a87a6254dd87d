"""
Response Verification & Guardrails for the Reobote lead agent.

Post-LLM check that keeps the agent from asserting a credit value the lead
never stated.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from lead_scoring.fact_extractor import CollectedFacts, parse_numeral

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Result of response verification."""
    passed: bool = True
    flags: List[str] = field(default_factory=list)
    sanitized_response: str = ""
    original_response: str = ""


class ResponseVerifier:
    """
    Verifies LLM replies before they reach the lead.

    Any R$ amount in the reply must equal the estimated value collected from
    the lead. Sentences carrying any other amount are removed.
    """

    AMOUNT_PATTERN = re.compile(
        r'r\$\s*([0-9][0-9.,]*)(\s*mil\b)?',
        re.IGNORECASE,
    )

    CENTS_PATTERN = re.compile(r',[0-9]{2}$')

    # Capturing, so the separators survive the split
    SENTENCE_BOUNDARY = re.compile(r'(?<=[.!?])(\s+)')

    def __init__(self, fallback_response: str):
        self.fallback_response = fallback_response

    def verify(self, response: str, facts: CollectedFacts) -> VerificationResult:
        """
        Run verification checks on an LLM reply.

        Args:
            response: LLM-generated reply
            facts: Facts collected from the lead

        Returns:
            VerificationResult with flags and sanitized response
        """
        result = VerificationResult(
            original_response=response,
            sanitized_response=response,
        )

        self._check_fabricated_amounts(result, facts)

        result.passed = len(result.flags) == 0

        if not result.passed:
            logger.warning(f"Response verification flags: {result.flags}")

        return result

    def _check_fabricated_amounts(self, result: VerificationResult, facts: CollectedFacts):
        """Drop sentences quoting amounts not collected from the lead."""
        parts = self.SENTENCE_BOUNDARY.split(result.sanitized_response)
        flagged = len(result.flags)
        pieces = []
        # Separator in front of the first sentence of a dropped run
        gap = None
        for i in range(0, len(parts), 2):
            sentence = parts[i]
            separator = parts[i - 1] if i else ""
            fabricated = self._fabricated_amount(sentence, facts.estimated_value)
            if fabricated is not None:
                result.flags.append(f"fabricated_amount:{fabricated}")
                if gap is None:
                    gap = separator
                continue
            if pieces:
                pieces.append(separator if gap is None else gap)
            pieces.append(sentence)
            gap = None

        if len(result.flags) == flagged:
            return

        result.sanitized_response = "".join(pieces).strip() or self.fallback_response

    def _fabricated_amount(self, sentence: str, known_value: Optional[int]) -> Optional[int]:
        for match in self.AMOUNT_PATTERN.finditer(sentence):
            numeral = self.CENTS_PATTERN.sub("", match.group(1).rstrip(".,"))
            amount = parse_numeral(numeral)
            if amount is None:
                continue
            if match.group(2):
                amount *= 1000
            if amount != known_value:
                return amount
        return None
