"""
Attendance API Routes for the Reobote lead agent.

An attendance is a finished conversation handed to the sales team.
"""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..services import get_services
from .chat import LeadDataIn, MessageIn
from lead_scoring.models import LeadValidationError
from lead_scoring.scoring_model import Classification, LeadPriority
from llm.attendance_store import AttendanceRecord

logger = logging.getLogger(__name__)

router = APIRouter()


class ClassificationIn(BaseModel):
    score: float = Field(default=5.0, ge=1, le=10)
    priority: str = LeadPriority.MEDIUM.value

    def to_classification(self) -> Classification:
        try:
            priority = LeadPriority(self.priority.lower())
        except ValueError:
            priority = LeadPriority.from_label(self.priority)
        return Classification(score=self.score, priority=priority)


class AttendanceCreate(BaseModel):
    """Attendance creation request."""
    lead_data: LeadDataIn
    messages: List[MessageIn] = []
    classification: Optional[ClassificationIn] = None
    has_interest: bool = True
    whatsapp_link: Optional[str] = None


@router.get("/attendances")
async def list_attendances() -> Dict[str, Any]:
    """List attendances, most recent first."""
    services = get_services()
    if services.attendance_store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    records = await services.attendance_store.list()
    return {
        "success": True,
        "attendances": [r.to_dict() for r in records],
        "total": len(records),
    }


@router.post("/attendances")
async def create_attendance(request: AttendanceCreate) -> Dict[str, Any]:
    """Store an attendance submitted by a client."""
    services = get_services()
    if services.attendance_store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        lead = request.lead_data.to_lead()
        lead.validate()
        classification = (request.classification or ClassificationIn()).to_classification()
    except (LeadValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    record = AttendanceRecord(
        lead=lead,
        turns=[m.to_turn() for m in request.messages],
        classification=classification,
        has_interest=request.has_interest,
        whatsapp_link=request.whatsapp_link,
    )
    await services.attendance_store.append(record)

    logger.info(
        f"Attendance saved: {record.id}, lead: {lead.name}, "
        f"score: {classification.score}"
    )

    return {"success": True, "attendance": record.to_dict()}
