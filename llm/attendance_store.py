"""
AttendanceStore protocol for the Reobote lead agent.

An attendance is the record of one finished guided conversation: the lead,
the full turn history and the classification handed to the sales team.
"""

import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from lead_scoring.models import LeadData, Turn
from lead_scoring.scoring_model import Classification

ID_ALPHABET = string.ascii_uppercase + string.digits


def new_attendance_id() -> str:
    """ATD-<epoch ms>-<5 random uppercase alphanumerics>."""
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(5))
    return f"ATD-{int(time.time() * 1000)}-{suffix}"


@dataclass
class AttendanceRecord:
    """A terminated conversation forwarded to the sales team."""
    lead: LeadData
    turns: List[Turn]
    classification: Classification
    has_interest: bool = True
    whatsapp_link: Optional[str] = None
    status: str = "encaminhado"
    id: str = field(default_factory=new_attendance_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "lead_data": self.lead.to_dict(),
            "messages": [t.to_dict() for t in self.turns],
            "classification": self.classification.to_dict(),
            "has_interest": self.has_interest,
            "whatsapp_link": self.whatsapp_link,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }


@runtime_checkable
class AttendanceStore(Protocol):
    """Protocol for attendance persistence."""

    async def append(self, record: AttendanceRecord) -> None:
        """Persist a finished attendance."""
        ...

    async def list(self) -> List[AttendanceRecord]:
        """All attendances, most recent first."""
        ...


class InMemoryAttendanceStore:
    """Attendances kept in process memory."""

    def __init__(self):
        self._records: List[AttendanceRecord] = []

    async def append(self, record: AttendanceRecord) -> None:
        self._records.append(record)

    async def list(self) -> List[AttendanceRecord]:
        # Later appends win ties on equal timestamps
        return sorted(
            reversed(self._records),
            key=lambda r: r.created_at,
            reverse=True,
        )
