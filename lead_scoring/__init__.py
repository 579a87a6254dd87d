"""
Lead Scoring Module for the Reobote lead agent.

This module provides lead qualification capabilities:
- Fact extraction (estimated value, timeline)
- Engagement scoring (1-10 scale, three priority tiers)
- Conversation termination detection
- WhatsApp handoff link building
"""

from .models import CreditType, LeadData, LeadIdentity, LeadValidationError, Turn, TurnRole
from .fact_extractor import FactExtractor, CollectedFacts, ValueRule
from .scoring_model import EngagementScorer, Classification, LeadPriority
from .termination import TerminationDetector, TerminationDecision, TerminationRule
from .handoff_link import build_handoff_link, parse_handoff_link

__all__ = [
    "CreditType",
    "LeadData",
    "LeadIdentity",
    "LeadValidationError",
    "Turn",
    "TurnRole",
    "FactExtractor",
    "CollectedFacts",
    "ValueRule",
    "EngagementScorer",
    "Classification",
    "LeadPriority",
    "TerminationDetector",
    "TerminationDecision",
    "TerminationRule",
    "build_handoff_link",
    "parse_handoff_link",
]
