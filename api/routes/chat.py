"""
Chat API Routes for the Reobote lead agent.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, BackgroundTasks
from pydantic import BaseModel, Field

from ..services import get_services
from ..middleware.metrics import record_turn, record_classification, record_llm_latency
from lead_scoring.models import CreditType, LeadData, LeadValidationError, Turn, TurnRole
from llm.orchestrator import TurnRequest, TurnResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / Response Models ─────────────────────────────────────

class LeadDataIn(BaseModel):
    name: str
    email: str
    phone: str
    credit_type: str
    message: Optional[str] = None

    def to_lead(self) -> LeadData:
        return LeadData(
            name=self.name,
            email=self.email,
            phone=self.phone,
            credit_type=CreditType.parse(self.credit_type),
            message=self.message or None,
        )


class MessageIn(BaseModel):
    role: TurnRole
    content: str = Field(..., max_length=4000)

    def to_turn(self) -> Turn:
        return Turn(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    lead_data: LeadDataIn
    messages: List[MessageIn] = []
    is_first_message: bool = False


class ClassificationOut(BaseModel):
    score: float
    priority: str


class ChatResponse(BaseModel):
    message: str
    should_finish: bool
    has_interest: bool
    classification: Optional[ClassificationOut] = None
    whatsapp_link: Optional[str] = None


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, background_tasks: BackgroundTasks):
    """
    Process one turn of the guided qualification conversation.

    1. Validate lead  2. Update collected facts  3. Generate reply
    4. Detect termination  5. Classify and build the WhatsApp handoff
    """
    services = get_services()
    if services.orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        lead = request.lead_data.to_lead()
        lead.validate()
    except LeadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    turn_request = TurnRequest(
        lead=lead,
        turns=[m.to_turn() for m in request.messages],
        is_first_turn=request.is_first_message,
    )

    # Turns of the same lead are processed one at a time
    async with services.state_store.lock(lead.identity):
        try:
            result = await services.orchestrator.process(turn_request)
        except LeadValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    _record_metrics(result)
    background_tasks.add_task(_log_chat_analytics, result, len(request.messages))

    classification = None
    if result.classification:
        classification = ClassificationOut(**result.classification.to_dict())

    return ChatResponse(
        message=result.reply,
        should_finish=result.should_end,
        has_interest=result.has_interest,
        classification=classification,
        whatsapp_link=result.handoff_link,
    )


# ── Helpers ───────────────────────────────────────────────────────

def _outcome(result: TurnResponse) -> str:
    if result.metadata.get("greeting"):
        return "greeting"
    if result.metadata.get("generation_failed") or result.metadata.get("internal_error"):
        return "fallback"
    return "finished" if result.should_end else "continue"


def _record_metrics(result: TurnResponse):
    record_turn(_outcome(result))
    if "generation_ms" in result.metadata:
        record_llm_latency(result.metadata["generation_ms"] / 1000)
    if result.classification:
        record_classification(result.classification.score, result.classification.priority.value)


def _log_chat_analytics(result: TurnResponse, message_count: int):
    """Log chat analytics (background task)."""
    logger.info(
        "Chat analytics",
        extra={
            "conversation_id": result.conversation_id,
            "message_count": message_count,
            "outcome": _outcome(result),
            "lead_score": result.classification.score if result.classification else None,
            "processing_time_ms": result.processing_time_ms,
        },
    )
