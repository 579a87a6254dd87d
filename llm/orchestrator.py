"""
Dialogue Orchestrator for the Reobote lead agent.

Runs one turn of the guided qualification conversation, from fact
extraction to the WhatsApp handoff.
"""

import logging
import time
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime

from lead_scoring.models import LeadData, Turn
from lead_scoring.fact_extractor import FactExtractor, CollectedFacts
from lead_scoring.scoring_model import EngagementScorer, Classification
from lead_scoring.termination import TerminationDetector, TerminationDecision
from lead_scoring.handoff_link import build_handoff_link

from .attendance_store import AttendanceRecord, AttendanceStore
from .conversation_store import ConversationState, ConversationStateStore
from .guardrails import ResponseVerifier
from .prompt_templates import PromptTemplates
from .providers.base import ReplyGenerator

logger = logging.getLogger(__name__)


@dataclass
class TurnRequest:
    """One inbound turn of a guided conversation."""
    lead: LeadData
    turns: List[Turn]
    is_first_turn: bool = False


@dataclass
class TurnResponse:
    """Outcome of a conversation turn."""
    reply: str
    conversation_id: str
    should_end: bool = False
    has_interest: bool = True
    classification: Optional[Classification] = None
    handoff_link: Optional[str] = None
    processing_time_ms: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "reply": self.reply,
            "conversation_id": self.conversation_id,
            "should_end": self.should_end,
            "has_interest": self.has_interest,
            "classification": self.classification.to_dict() if self.classification else None,
            "handoff_link": self.handoff_link,
            "processing_time_ms": self.processing_time_ms,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }


class DialogueOrchestrator:
    """
    Orchestrates a guided qualification conversation.

    Pipeline per turn:
    1. Validate lead data
    2. Extract facts from the lead's messages and update conversation state
    3. First turn: answer with the templated greeting (no LLM call)
    4. Build the system instruction and generate the reply
    5. Verify the reply against the collected facts
    6. Detect termination
    7. On termination: classify, build the handoff link, clear state,
       persist the attendance
    """

    def __init__(
        self,
        generator: Optional[ReplyGenerator],
        state_store: ConversationStateStore,
        attendance_store: Optional[AttendanceStore] = None,
        fact_extractor: Optional[FactExtractor] = None,
        scorer: Optional[EngagementScorer] = None,
        termination_detector: Optional[TerminationDetector] = None,
        response_verifier: Optional[ResponseVerifier] = None,
        brand_name: str = "Reobote Consórcios",
        agent_name: str = "Ana",
        whatsapp_number: str = "5585988887777",
    ):
        """
        Initialize the orchestrator.

        Args:
            generator: LLM reply generator (None means generation unavailable)
            state_store: Per-lead conversation state store
            attendance_store: Optional store for finished conversations
            fact_extractor: Fact extractor
            scorer: Engagement scorer
            termination_detector: Termination detector
            response_verifier: Reply verifier
            brand_name: Brand name for prompts
            agent_name: Persona name for prompts
            whatsapp_number: Destination of the handoff link
        """
        self.generator = generator
        self.state_store = state_store
        self.attendance_store = attendance_store
        self.fact_extractor = fact_extractor or FactExtractor()
        self.scorer = scorer or EngagementScorer()
        self.termination_detector = termination_detector or TerminationDetector()
        self.response_verifier = response_verifier or ResponseVerifier(
            fallback_response=PromptTemplates.FALLBACK_REPLY
        )
        self.brand_name = brand_name
        self.agent_name = agent_name
        self.whatsapp_number = whatsapp_number

    async def process(self, request: TurnRequest) -> TurnResponse:
        """
        Process one conversation turn.

        Callers must serialize turns of the same lead (see
        ``ConversationStateStore.lock``).

        Args:
            request: Turn request

        Returns:
            Turn response

        Raises:
            LeadValidationError: If the lead data is malformed
        """
        start_time = time.time()
        lead = request.lead
        lead.validate()
        identity = lead.identity

        # Step 1: Update conversation state from the lead's own words
        extracted = self.fact_extractor.extract_from_turns(request.turns)
        state = self.state_store.mutate(
            identity, lambda s: self._apply_turn(s, len(request.turns), extracted)
        )

        # Step 2: First turn gets the templated greeting
        if request.is_first_turn:
            return self._response(
                PromptTemplates.build_greeting(lead), state, start_time,
                metadata={"greeting": True},
            )

        # Step 3: Generate the reply
        system_prompt = PromptTemplates.get_system_prompt(
            lead=lead,
            facts=state.collected_facts,
            turn_count=state.turn_count,
            brand_name=self.brand_name,
            agent_name=self.agent_name,
        )

        generation_start = time.time()
        try:
            reply = await self._generate(system_prompt, request.turns)
        except Exception as e:
            logger.error(f"Reply generation failed for {identity.key}: {e}")
            return self._response(
                PromptTemplates.FALLBACK_REPLY, state, start_time,
                metadata={"generation_failed": True},
            )
        generation_ms = round((time.time() - generation_start) * 1000, 2)

        # Step 4: Verify, detect termination, classify
        try:
            verification = self.response_verifier.verify(reply, state.collected_facts)
            response = self._conclude_turn(request, state, verification.sanitized_response)
        except Exception as e:
            logger.error(f"Turn processing failed for {identity.key}, discarding state: {e}")
            self.state_store.delete(identity)
            return self._response(
                PromptTemplates.FALLBACK_REPLY, state, start_time,
                metadata={"internal_error": True},
            )

        response.metadata.update({
            "generation_ms": generation_ms,
            "verification_flags": verification.flags,
        })

        # Step 5: Persist the finished attendance
        if response.should_end:
            await self._persist(request, response)

        response.processing_time_ms = round((time.time() - start_time) * 1000, 2)
        return response

    @staticmethod
    def _apply_turn(state: ConversationState, turn_count: int, extracted: CollectedFacts):
        # A replayed shorter history never moves the count backwards
        state.turn_count = max(state.turn_count, turn_count)
        state.collected_facts = state.collected_facts.merge(extracted)

    async def _generate(self, system_prompt: str, turns: List[Turn]) -> str:
        """Generate the agent reply."""
        if self.generator is None:
            raise RuntimeError("No reply generator configured")
        reply = await self.generator.agenerate_with_history(
            messages=[t.to_dict() for t in turns],
            system=system_prompt,
        )
        if not (reply or "").strip():
            raise ValueError("Empty reply from generator")
        return reply

    def _conclude_turn(
        self,
        request: TurnRequest,
        state: ConversationState,
        reply: str,
    ) -> TurnResponse:
        """Apply the termination decision to the generated reply."""
        lead = request.lead
        facts = state.collected_facts
        decision = self.termination_detector.detect(request.turns, facts)

        if not decision.should_end:
            return self._response(reply, state, metadata={"termination": decision.reason})

        classification = self.scorer.score(lead.credit_type, request.turns, facts)
        if not decision.has_interest:
            classification = classification.penalized()

        handoff_link = build_handoff_link(lead, classification, facts, self.whatsapp_number)

        if decision.has_interest and not PromptTemplates.mentions_handoff_channel(reply):
            reply += PromptTemplates.build_closing_remark(lead)

        self.state_store.delete(lead.identity)

        logger.info(
            f"Conversation finished: {state.identity_key} "
            f"(reason={decision.reason}, interest={decision.has_interest}, "
            f"score={classification.score}, priority={classification.priority.value})"
        )

        return self._response(
            reply,
            state,
            decision=decision,
            classification=classification,
            handoff_link=handoff_link,
            metadata={"termination": decision.reason},
        )

    async def _persist(self, request: TurnRequest, response: TurnResponse):
        """Append the finished attendance to the store."""
        if not self.attendance_store:
            return
        record = AttendanceRecord(
            lead=request.lead,
            turns=list(request.turns),
            classification=response.classification,
            has_interest=response.has_interest,
            whatsapp_link=response.handoff_link,
        )
        try:
            await self.attendance_store.append(record)
            response.metadata["attendance_id"] = record.id
        except Exception as e:
            logger.error(f"Failed to persist attendance for {request.lead.identity.key}: {e}")

    @staticmethod
    def _response(
        reply: str,
        state: ConversationState,
        start_time: Optional[float] = None,
        decision: Optional[TerminationDecision] = None,
        classification: Optional[Classification] = None,
        handoff_link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TurnResponse:
        processing_time = (time.time() - start_time) * 1000 if start_time else 0.0
        return TurnResponse(
            reply=reply,
            conversation_id=state.identity_key,
            should_end=decision.should_end if decision else False,
            has_interest=decision.has_interest if decision else True,
            classification=classification,
            handoff_link=handoff_link,
            processing_time_ms=round(processing_time, 2),
            metadata={
                "conversation_turns": state.turn_count,
                "collected_facts": state.collected_facts.to_dict(),
                **(metadata or {}),
            },
        )

    def set_generator(self, generator: Optional[ReplyGenerator]):
        """Set the LLM reply generator."""
        self.generator = generator
