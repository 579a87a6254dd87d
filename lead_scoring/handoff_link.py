"""
WhatsApp handoff link for the Reobote lead agent.

Builds the prefilled contact link handed to the lead when a conversation
ends, carrying the lead context and classification for the specialist.
"""

import re
from typing import Tuple
from urllib.parse import quote, urlsplit, parse_qs

from .models import LeadData
from .fact_extractor import CollectedFacts
from .scoring_model import Classification, LeadPriority

WHATSAPP_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves untouched besides alphanumerics
URI_COMPONENT_SAFE = "-_.!~*'()"

# Only the trailing line counts; lead-supplied text comes before it
CLASSIFICATION_PATTERN = re.compile(
    r'\[Lead (\S+) - Score: ([0-9]+(?:\.[0-9]+)?)/10\]\Z'
)


def format_brl(value: int) -> str:
    """Format an amount with '.' thousands separators (150000 -> 150.000)."""
    return f"{value:,}".replace(",", ".")


def format_score(score: float) -> str:
    return f"{score:.1f}"


def build_handoff_message(
    lead: LeadData,
    classification: Classification,
    facts: CollectedFacts,
) -> str:
    """Plain-text message prefilled in the handoff link."""
    lines = [
        f"Olá! Sou {lead.name}.",
        f"Tenho interesse em consórcio de {lead.credit_type.label}.",
    ]

    if facts.estimated_value:
        lines.append(f"Valor aproximado: R$ {format_brl(facts.estimated_value)}")
    if facts.timeline:
        lines.append(f"Prazo: {facts.timeline}")
    if facts.main_concern:
        lines.append(f"Principal interesse: {facts.main_concern}")

    lines.append("")
    lines.append(
        f"[Lead {classification.priority.label} - "
        f"Score: {format_score(classification.score)}/10]"
    )
    return "\n".join(lines)


def build_handoff_link(
    lead: LeadData,
    classification: Classification,
    facts: CollectedFacts,
    whatsapp_number: str,
) -> str:
    """
    Build the WhatsApp handoff link.

    Args:
        lead: Lead contact data
        classification: Final (possibly penalized) classification
        facts: Collected facts
        whatsapp_number: Destination number, digits only

    Returns:
        wa.me URL with the percent-encoded message
    """
    message = build_handoff_message(lead, classification, facts)
    encoded = quote(message, safe=URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}/{whatsapp_number}?text={encoded}"


def parse_handoff_link(url: str) -> Tuple[float, LeadPriority]:
    """
    Read the score and priority back from a handoff link.

    Raises:
        ValueError: If the link carries no classification
    """
    query = parse_qs(urlsplit(url).query)
    text = query.get("text", [""])[0]
    match = CLASSIFICATION_PATTERN.search(text)
    if not match:
        raise ValueError("Handoff link carries no classification")
    return float(match.group(2)), LeadPriority.from_label(match.group(1))
