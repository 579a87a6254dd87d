"""
Prompt Templates for the Reobote lead agent.

Manages the system instruction given to the LLM and the fixed messages the
agent sends without calling it (greeting, closing remark, fallback).
"""

from enum import Enum
from typing import Optional

from lead_scoring.models import LeadData
from lead_scoring.fact_extractor import CollectedFacts
from lead_scoring.handoff_link import format_brl


class ConversationStage(Enum):
    """How far the guided conversation has progressed."""
    QUALIFYING = "qualifying"
    HANDOFF_OFFER = "handoff_offer"   # 4+ turns
    WRAP_UP = "wrap_up"               # 6+ turns


class PromptTemplates:
    """
    Manages prompt templates for the lead agent.

    Templates are written in Brazilian Portuguese for consortium sales,
    with the no-invention rule stated as a hard constraint.
    """

    NOT_INFORMED = "ainda não informado"

    SYSTEM_PROMPT = """Você é a {agent_name}, uma consultora simpática e experiente da {brand_name}. Seu objetivo é entender a necessidade do cliente de forma natural e humanizada, como uma conversa real.

INFORMAÇÕES DO CLIENTE:
- Nome: {name}
- Interesse: Consórcio de {credit_label}
- Dúvida inicial: {initial_message}

INFORMAÇÕES JÁ COLETADAS:
{collected_facts}

REGRAS DE CONVERSA:
1. Seja natural, simpática e use emojis moderadamente (1-2 por mensagem)
2. Use o primeiro nome do cliente
3. Faça no máximo UMA pergunta por vez, de forma casual
4. Se o cliente já disse algo sobre valor ou prazo, não pergunte novamente
5. Respostas curtas (2-4 frases no máximo)
6. Não seja robótica ou formal demais
7. Demonstre entusiasmo genuíno em ajudar

REGRA CRÍTICA - NUNCA INVENTE INFORMAÇÕES:
- NUNCA mencione valores, prazos ou informações que o cliente NÃO disse explicitamente
- Se você não tem certeza de uma informação, pergunte em vez de assumir
- Baseie-se APENAS no que está escrito no histórico da conversa
- Se o campo "{not_informed}" aparecer acima, NÃO invente um valor

PERGUNTAS PARA FAZER (se ainda não tiver a informação):
- Qual valor aproximado você está pensando?
- Tem algum prazo em mente?
- É seu primeiro consórcio?"""

    STAGE_INSTRUCTIONS = {
        ConversationStage.QUALIFYING: None,
        ConversationStage.HANDOFF_OFFER: (
            "IMPORTANTE: A conversa está avançada. Se já tiver informações suficientes, "
            "ofereça para transferir para um especialista no WhatsApp de forma natural."
        ),
        ConversationStage.WRAP_UP: (
            "MUITO IMPORTANTE: Hora de finalizar! Agradeça, resuma o que entendeu e "
            "convide para falar com um especialista no WhatsApp."
        ),
    }

    GREETING_WITH_MESSAGE = (
        "Oi {first_name}! 😊 Vi que você tem interesse em {credit_label} e mencionou: "
        "\"{message}\". Me conta mais sobre o que você está buscando!"
    )

    GREETING = (
        "Oi {first_name}! 😊 Que legal que você está interessado em consórcio de "
        "{credit_label}! Me conta, o que te motivou a buscar essa opção?"
    )

    CLOSING_REMARK = (
        "\n\nBom, {first_name}, com base no que conversamos, tenho certeza que temos a "
        "opção perfeita pra você! 🎯 Um dos nossos especialistas entrará em contato em "
        "breve pelo WhatsApp!"
    )

    FALLBACK_REPLY = "Ops, tive um probleminha aqui. Pode repetir?"

    # A reply mentioning any of these already points the lead to the handoff
    HANDOFF_CHANNEL_WORDS = ("whatsapp", "especialista", "contato")

    @staticmethod
    def detect_stage(turn_count: int) -> ConversationStage:
        """Stage of a conversation with ``turn_count`` turns."""
        if turn_count >= 6:
            return ConversationStage.WRAP_UP
        if turn_count >= 4:
            return ConversationStage.HANDOFF_OFFER
        return ConversationStage.QUALIFYING

    @classmethod
    def get_system_prompt(
        cls,
        lead: LeadData,
        facts: CollectedFacts,
        turn_count: int,
        brand_name: str = "Reobote Consórcios",
        agent_name: str = "Ana",
    ) -> str:
        """
        Build the system instruction for the current turn.

        Args:
            lead: Lead contact data
            facts: Facts collected so far
            turn_count: Number of turns in the history
            brand_name: Brand name to use
            agent_name: Persona name

        Returns:
            Formatted system prompt
        """
        prompt = cls.SYSTEM_PROMPT.format(
            agent_name=agent_name,
            brand_name=brand_name,
            name=lead.name,
            credit_label=lead.credit_type.label,
            initial_message=lead.message or "Não informada",
            collected_facts=cls.format_collected_facts(facts),
            not_informed=cls.NOT_INFORMED,
        )

        stage_instruction = cls.STAGE_INSTRUCTIONS[cls.detect_stage(turn_count)]
        if stage_instruction:
            prompt += f"\n\n{stage_instruction}"

        return prompt

    @classmethod
    def format_collected_facts(cls, facts: CollectedFacts) -> str:
        lines = []
        if facts.estimated_value:
            lines.append(f"- Valor aproximado: R$ {format_brl(facts.estimated_value)}")
        else:
            lines.append(f"- Valor: {cls.NOT_INFORMED}")

        if facts.timeline:
            lines.append(f"- Prazo: {facts.timeline}")
        else:
            lines.append(f"- Prazo: {cls.NOT_INFORMED}")

        if facts.main_concern:
            lines.append(f"- Principal interesse: {facts.main_concern}")

        return "\n".join(lines)

    @classmethod
    def build_greeting(cls, lead: LeadData) -> str:
        """Templated first message, sent without calling the LLM."""
        template = cls.GREETING_WITH_MESSAGE if lead.message else cls.GREETING
        return template.format(
            first_name=lead.first_name,
            credit_label=lead.credit_type.label,
            message=lead.message,
        )

    @classmethod
    def build_closing_remark(cls, lead: LeadData) -> str:
        return cls.CLOSING_REMARK.format(first_name=lead.first_name)

    @classmethod
    def mentions_handoff_channel(cls, reply: Optional[str]) -> bool:
        reply_lower = (reply or "").lower()
        return any(word in reply_lower for word in cls.HANDOFF_CHANNEL_WORDS)
